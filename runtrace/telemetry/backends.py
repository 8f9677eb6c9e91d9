"""Field consumers that finalize a telemetry session.

NullBackend drops everything. RemoteBackend buffers visited fields and
submits them as one JSON document when the session completes.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from runtrace.models import Field, FieldCategory
from runtrace.telemetry.share import post_telemetry

logger = logging.getLogger(__name__)

Transport = Callable[[str, dict, str, str], bool]

# Nested sections of the submission document, in output order.
# FieldCategory.NONE fields sit at the top level.
SECTION_ORDER = (
    FieldCategory.APP,
    FieldCategory.SESSION,
    FieldCategory.USER_CONFIG,
    FieldCategory.USER_SYSTEM,
)


class Backend(ABC):
    """One visit method per ValueKind, then a single complete() call."""

    @abstractmethod
    def visit_boolean(self, field: Field) -> None: ...

    @abstractmethod
    def visit_int32(self, field: Field) -> None: ...

    @abstractmethod
    def visit_int64(self, field: Field) -> None: ...

    @abstractmethod
    def visit_float(self, field: Field) -> None: ...

    @abstractmethod
    def visit_double(self, field: Field) -> None: ...

    @abstractmethod
    def visit_string(self, field: Field) -> None: ...

    @abstractmethod
    def complete(self) -> bool:
        """Finish the session. Returns True on success."""


class NullBackend(Backend):
    def visit_boolean(self, field: Field) -> None:
        pass

    def visit_int32(self, field: Field) -> None:
        pass

    def visit_int64(self, field: Field) -> None:
        pass

    def visit_float(self, field: Field) -> None:
        pass

    def visit_double(self, field: Field) -> None:
        pass

    def visit_string(self, field: Field) -> None:
        pass

    def complete(self) -> bool:
        return True


class RemoteBackend(Backend):
    """Buffers (category, name, value) and posts the document on complete().

    complete() may run once, after every visit for the session.
    """

    def __init__(
        self,
        endpoint_url: str,
        username: str,
        token: str,
        transport: Transport | None = None,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.username = username
        self.token = token
        self._transport = transport or post_telemetry
        self._buffer: list[tuple[FieldCategory, str, bool | int | float | str]] = []
        self._completed = False

    def _serialize(self, field: Field) -> None:
        if self._completed:
            raise RuntimeError("RemoteBackend visited after complete()")
        self._buffer.append((field.category, field.name, field.value))

    visit_boolean = _serialize
    visit_int32 = _serialize
    visit_int64 = _serialize
    visit_float = _serialize
    visit_double = _serialize
    visit_string = _serialize

    def build_document(self) -> dict:
        """Submission document. A later duplicate name in a section wins."""
        top: dict = {}
        sections: dict[FieldCategory, dict] = {c: {} for c in SECTION_ORDER}
        for category, name, value in self._buffer:
            target = top if category is FieldCategory.NONE else sections[category]
            target[name] = value
        for category in SECTION_ORDER:
            top[category.value] = sections[category]
        return top

    def complete(self) -> bool:
        if self._completed:
            raise RuntimeError("RemoteBackend.complete() called twice")
        self._completed = True
        document = self.build_document()
        logger.debug("Submitting %d telemetry fields to %s", len(self._buffer), self.endpoint_url)
        return self._transport(self.endpoint_url, document, self.username, self.token)
