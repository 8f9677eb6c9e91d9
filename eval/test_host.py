"""Tests for the host capability probe and vendor classification."""
import os
import subprocess
import sys

import pytest

from runtrace import host
from runtrace.models import CPUVendor

REPO_ROOT = os.path.join(os.path.dirname(__file__), "..")

CPUINFO_INTEL = """\
processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8700K CPU @ 3.70GHz
flags\t\t: fpu sse sse2 pni ssse3 fma sse4_1 sse4_2 aes avx bmi1 avx2 bmi2

processor\t: 1
vendor_id\t: GenuineIntel
model name\t: should not be read
flags\t\t: fpu
"""

CPUINFO_ARM = """\
processor\t: 0
BogoMIPS\t: 48.00
Features\t: fp asimd evtstrm aes
"""


@pytest.mark.parametrize("vendor,expected", [
    (CPUVendor.INTEL, "Intel"),
    (CPUVendor.AMD, "Amd"),
    (CPUVendor.OTHER, "Other"),
])
def test_vendor_names(vendor, expected):
    assert host.cpu_vendor_to_str(vendor) == expected


def test_unknown_vendor_aborts_process():
    """An unclassified vendor must kill the process, not return a default."""
    code = (
        "from runtrace.host import cpu_vendor_to_str\n"
        "cpu_vendor_to_str('ARM')\n"
        "print('survived')\n"
    )
    proc = subprocess.run(
        [sys.executable, "-c", code],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert proc.returncode != 0
    assert "survived" not in proc.stdout
    assert "Unreachable CPU vendor classification" in proc.stderr


def test_caps_from_cpuinfo_reads_first_processor():
    caps = host.caps_from_cpuinfo(CPUINFO_INTEL)

    assert caps.vendor is CPUVendor.INTEL
    assert caps.cpu_string == "GenuineIntel"
    assert caps.brand_string.startswith("Intel(R) Core(TM) i7-8700K")
    assert caps.sse3, "pni is reported as SSE3"
    assert caps.avx and caps.avx2 and caps.aes and caps.sse4_2
    assert not caps.fma4


def test_caps_from_cpuinfo_without_x86_fields():
    caps = host.caps_from_cpuinfo(CPUINFO_ARM)
    assert caps.vendor is CPUVendor.OTHER
    assert caps.cpu_string == ""
    assert not caps.aes, "ARM Features line is not x86 flags"


@pytest.mark.parametrize("platform_name,expected", [
    ("darwin", "Apple"),
    ("win32", "Windows"),
    ("linux", "Linux"),
    ("freebsd13", "Unknown"),
])
def test_os_platform(monkeypatch, platform_name, expected):
    monkeypatch.setattr(host.sys, "platform", platform_name)
    assert host.os_platform() == expected


def test_probe_cpu_falls_back_without_cpuinfo(monkeypatch, tmp_path):
    monkeypatch.setattr(host, "CPUINFO_PATH", str(tmp_path / "missing"))
    monkeypatch.setattr(host.platform, "processor", lambda: "AMD64 Family 23 Model 113, AuthenticAMD")
    caps = host.probe_cpu()
    assert caps.vendor is CPUVendor.AMD
