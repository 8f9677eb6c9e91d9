"""Non-blocking credential check used by account/login flows."""
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable

from runtrace.config import Settings
from runtrace.telemetry.share import LoginClient

logger = logging.getLogger(__name__)


class LoginVerifier:
    """Resolves a Future[bool] off the caller's thread.

    With the web service unavailable the future resolves to False without
    any network contact. on_complete is attached to the future, so it runs
    exactly once, after the result is set, on either path.
    """

    def __init__(
        self,
        settings: Settings,
        client: LoginClient | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.settings = settings
        if client is None and settings.web_service:
            client = LoginClient()
        self.client = client
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="runtrace-login",
        )

    @property
    def available(self) -> bool:
        return self.settings.web_service and self.client is not None

    def verify_login(
        self,
        username: str,
        token: str,
        on_complete: Callable[[bool], None] | None = None,
    ) -> Future:
        if self.available:
            future = self._executor.submit(self._check, username, token)
        else:
            future = self._executor.submit(_unavailable)
        if on_complete is not None:
            future.add_done_callback(lambda f: on_complete(f.result()))
        return future

    def _check(self, username: str, token: str) -> bool:
        try:
            return bool(self.client.verify(self.settings.verify_endpoint_url, username, token))
        except Exception:
            # Clients outside share.py may raise; the future still resolves to a bool.
            logger.exception("Login verification for %s failed", username)
            return False

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)


def _unavailable() -> bool:
    logger.debug("Login verification unavailable; web service disabled")
    return False
