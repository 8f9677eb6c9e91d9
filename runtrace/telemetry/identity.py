"""Persistent anonymous installation identifier.

The identifier file holds exactly 8 bytes: a native-endian unsigned 64-bit
integer. It is created on first read and only changes on regenerate().
There is no locking; one writer at a time is assumed.
"""
from __future__ import annotations

import logging
import os
import secrets
import sys

logger = logging.getLogger(__name__)

IDENTIFIER_FILENAME = "telemetry_id"
IDENTIFIER_SIZE = 8


def default_identifier_path(config_dir: str) -> str:
    return os.path.join(config_dir, IDENTIFIER_FILENAME)


def generate_identifier() -> int:
    """Random non-zero 64-bit value. Zero is the failure sentinel."""
    while True:
        value = secrets.randbits(64)
        if value:
            return value


def _encode(value: int) -> bytes:
    return value.to_bytes(IDENTIFIER_SIZE, sys.byteorder)


def _decode(data: bytes) -> int:
    return int.from_bytes(data, sys.byteorder)


class IdentifierStore:
    """Reads, creates and regenerates the identifier at an explicit path.

    I/O failures are logged and reported as 0, never raised.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def get(self) -> int:
        if os.path.exists(self.path):
            try:
                with open(self.path, "rb") as f:
                    data = f.read(IDENTIFIER_SIZE)
            except OSError as e:
                logger.error("failed to open telemetry_id: %s (%s)", self.path, e)
                return 0
            if len(data) != IDENTIFIER_SIZE:
                logger.error("truncated telemetry_id: %s (%d bytes)", self.path, len(data))
                return 0
            return _decode(data)
        return self._write(generate_identifier())

    def regenerate(self) -> int:
        return self._write(generate_identifier())

    def _write(self, value: int) -> int:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with open(self.path, "wb") as f:
                f.write(_encode(value))
        except OSError as e:
            logger.error("failed to open telemetry_id: %s (%s)", self.path, e)
            return 0
        logger.debug("Wrote new telemetry id to %s", self.path)
        return value
