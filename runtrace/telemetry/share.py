"""Network transport for telemetry submission and login verification.

This module is the ONLY network code in runtrace. Neither function raises:
every failure is logged at debug level and reported as False.
"""
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request

from runtrace import __version__

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 5


def _headers(username: str, token: str) -> dict:
    return {
        "Content-Type": "application/json",
        "User-Agent": f"runtrace/{__version__}",
        "x-username": username,
        "x-token": token,
    }


def post_telemetry(url: str, document: dict, username: str, token: str) -> bool:
    """POST a session document. Returns True on 2xx, False otherwise."""
    try:
        data = json.dumps(document).encode("utf-8")
        req = urllib.request.Request(
            url,
            data=data,
            headers=_headers(username, token),
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=TIMEOUT_SECONDS) as resp:
            status = resp.status
            logger.debug("Telemetry POST %s: HTTP %d", url, status)
            return 200 <= status < 300
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.debug("Telemetry POST %s failed: %s", url, e)
        return False


class LoginClient:
    """Checks credentials against the profile endpoint.

    The endpoint echoes the account for a valid x-username/x-token pair;
    the login is valid when the echoed username matches.
    """

    def __init__(self, timeout: float = TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def verify(self, url: str, username: str, token: str) -> bool:
        try:
            req = urllib.request.Request(url, headers=_headers(username, token), method="GET")
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("Login check %s: HTTP %d", url, resp.status)
                    return False
                body = json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.debug("Login check %s failed: %s", url, e)
            return False

        if not isinstance(body, dict):
            return False
        return body.get("username") == username
