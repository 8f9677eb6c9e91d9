"""Host capability probe: CPU identification and OS platform."""
from __future__ import annotations

import logging
import os
import platform
import sys

from runtrace.models import CPUCaps, CPUVendor

logger = logging.getLogger(__name__)

CPUINFO_PATH = "/proc/cpuinfo"

_VENDOR_NAMES = {
    CPUVendor.INTEL: "Intel",
    CPUVendor.AMD: "Amd",
    CPUVendor.OTHER: "Other",
}

_VENDOR_IDS = {
    "GenuineIntel": CPUVendor.INTEL,
    "AuthenticAMD": CPUVendor.AMD,
}

# CPUCaps attribute -> /proc/cpuinfo flag
_FLAG_NAMES = {
    "aes": "aes",
    "avx": "avx",
    "avx2": "avx2",
    "bmi1": "bmi1",
    "bmi2": "bmi2",
    "fma": "fma",
    "fma4": "fma4",
    "sse": "sse",
    "sse2": "sse2",
    "sse3": "pni",
    "ssse3": "ssse3",
    "sse4_1": "sse4_1",
    "sse4_2": "sse4_2",
}


def cpu_vendor_to_str(vendor) -> str:
    """Map a CPUVendor to its reported name.

    The vendor set is exhaustive. Anything else aborts the process.
    """
    try:
        return _VENDOR_NAMES[vendor]
    except (KeyError, TypeError):
        logger.critical("Unreachable CPU vendor classification: %r", vendor)
        os.abort()


def os_platform() -> str:
    if sys.platform == "darwin":
        return "Apple"
    if sys.platform in ("win32", "cygwin"):
        return "Windows"
    if sys.platform.startswith("linux"):
        return "Linux"
    return "Unknown"


def _parse_cpuinfo(text: str) -> dict[str, str]:
    """First processor block of /proc/cpuinfo as a key -> value dict."""
    info: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if info:
                break
            continue
        key, sep, value = line.partition(":")
        if sep:
            info[key.strip()] = value.strip()
    return info


def caps_from_cpuinfo(text: str) -> CPUCaps:
    info = _parse_cpuinfo(text)
    vendor_id = info.get("vendor_id", "")
    flags = set(info.get("flags", "").split())
    return CPUCaps(
        cpu_string=vendor_id,
        brand_string=info.get("model name", ""),
        vendor=_VENDOR_IDS.get(vendor_id, CPUVendor.OTHER),
        **{attr: flag in flags for attr, flag in _FLAG_NAMES.items()},
    )


def probe_cpu() -> CPUCaps:
    """Describe the host CPU. Falls back to the platform module off Linux."""
    try:
        with open(CPUINFO_PATH, "r", encoding="utf-8", errors="replace") as f:
            return caps_from_cpuinfo(f.read())
    except OSError as e:
        logger.debug("cpuinfo unavailable: %s", e)

    processor = platform.processor()
    vendor = CPUVendor.OTHER
    if "Intel" in processor:
        vendor = CPUVendor.INTEL
    elif "AMD" in processor:
        vendor = CPUVendor.AMD
    return CPUCaps(cpu_string=platform.machine(), brand_string=processor, vendor=vendor)
