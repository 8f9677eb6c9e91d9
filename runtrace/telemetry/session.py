"""Per-run telemetry session.

Construction collects the one-time fields: identifier, start time, program
title, build, host system and user configuration. close() adds the shutdown
time, drains the fields into the backend and completes it. Nothing raises
across either boundary except an unknown CPU vendor, which aborts.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from runtrace.build_info import current_build_info
from runtrace.config import Settings
from runtrace.host import cpu_vendor_to_str, os_platform, probe_cpu
from runtrace.models import BuildInfo, CPUCaps, FieldCategory, SessionState, ValueKind
from runtrace.telemetry.backends import Backend, NullBackend, RemoteBackend, Transport
from runtrace.telemetry.fields import FieldCollection
from runtrace.telemetry.identity import IdentifierStore, default_identifier_path

logger = logging.getLogger(__name__)

# Field name suffix -> CPUCaps attribute
CPU_EXTENSIONS = (
    ("AES", "aes"),
    ("AVX", "avx"),
    ("AVX2", "avx2"),
    ("BMI1", "bmi1"),
    ("BMI2", "bmi2"),
    ("FMA", "fma"),
    ("FMA4", "fma4"),
    ("SSE", "sse"),
    ("SSE2", "sse2"),
    ("SSE3", "sse3"),
    ("SSSE3", "ssse3"),
    ("SSE41", "sse4_1"),
    ("SSE42", "sse4_2"),
)


def select_backend(settings: Settings, transport: Transport | None = None) -> Backend:
    if not settings.enable_telemetry:
        return NullBackend()
    return RemoteBackend(
        settings.telemetry_endpoint_url,
        settings.username,
        settings.token,
        transport=transport,
    )


def _now_ms(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


class TelemetrySession:
    """Owns one FieldCollection and one Backend for a single application run.

    Single-use: UNINITIALIZED -> ACTIVE -> FINALIZING -> TERMINATED.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        id_store: IdentifierStore | None = None,
        cpu_caps: CPUCaps | None = None,
        build: BuildInfo | None = None,
        read_title: Callable[[], str | None] | None = None,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = SessionState.UNINITIALIZED
        self.fields = FieldCollection()
        self.submitted: bool | None = None
        self._clock = clock

        self.backend: Backend | None = select_backend(settings, transport)
        self.state = SessionState.ACTIVE

        id_store = id_store or IdentifierStore(default_identifier_path(settings.config_dir))
        self.add_field(FieldCategory.NONE, "TelemetryId", id_store.get())

        # Session start
        self.add_field(FieldCategory.SESSION, "Init_Time", _now_ms(clock))
        title = self._read_title(read_title)
        if title:
            self.add_field(FieldCategory.SESSION, "ProgramName", title)

        self._add_build_fields(build or current_build_info())
        self._add_system_fields(cpu_caps or probe_cpu())
        self._add_config_fields(settings)
        logger.debug("Telemetry session started with %s", type(self.backend).__name__)

    @staticmethod
    def _read_title(read_title: Callable[[], str | None] | None) -> str | None:
        if read_title is None:
            return None
        try:
            return read_title()
        except Exception as e:
            # The host loader is external; a failed lookup only drops ProgramName.
            logger.debug("Program title unavailable: %s", e)
            return None

    def _add_build_fields(self, build: BuildInfo) -> None:
        self.add_field(FieldCategory.APP, "Git_IsDirty", build.is_dirty)
        self.add_field(FieldCategory.APP, "Git_Branch", build.branch)
        self.add_field(FieldCategory.APP, "Git_Revision", build.revision)
        self.add_field(FieldCategory.APP, "BuildDate", build.build_date)
        self.add_field(FieldCategory.APP, "BuildName", build.build_name)

    def _add_system_fields(self, caps: CPUCaps) -> None:
        system = FieldCategory.USER_SYSTEM
        self.add_field(system, "CPU_Model", caps.cpu_string)
        self.add_field(system, "CPU_BrandString", caps.brand_string)
        self.add_field(system, "CPU_Vendor", cpu_vendor_to_str(caps.vendor))
        for suffix, attr in CPU_EXTENSIONS:
            self.add_field(system, f"CPU_Extension_x64_{suffix}", getattr(caps, attr))
        self.add_field(system, "OsPlatform", os_platform())

    def _add_config_fields(self, settings: Settings) -> None:
        config = FieldCategory.USER_CONFIG
        self.add_field(config, "Core_CpuCore", int(settings.cpu_core), ValueKind.INT32)
        self.add_field(config, "Renderer_ResolutionFactor", settings.resolution_factor, ValueKind.INT32)
        self.add_field(config, "Renderer_ToggleFramelimit", settings.toggle_framelimit)

    def add_field(self, category: FieldCategory, name: str, value, kind: ValueKind | None = None):
        if self.state is not SessionState.ACTIVE:
            raise RuntimeError(f"cannot add field {name!r} to a {self.state.value} session")
        return self.fields.add_field(category, name, value, kind)

    def close(self) -> None:
        if self.state is not SessionState.ACTIVE:
            return

        self.add_field(FieldCategory.SESSION, "Shutdown_Time", _now_ms(self._clock))
        self.state = SessionState.FINALIZING

        try:
            self.fields.accept(self.backend)
            self.submitted = bool(self.backend.complete())
        except Exception:
            logger.exception("Telemetry backend failed during completion")
            self.submitted = False
        finally:
            self.backend = None
            self.state = SessionState.TERMINATED

        if self.submitted:
            logger.info("Telemetry session completed (%d fields)", len(self.fields))
        else:
            logger.warning("Telemetry submission failed (%d fields)", len(self.fields))

    def __enter__(self) -> TelemetrySession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
