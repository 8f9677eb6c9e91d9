"""Build metadata reported in the App section.

Values come from RUNTRACE_SCM_DESC, RUNTRACE_SCM_BRANCH, RUNTRACE_SCM_REV,
RUNTRACE_BUILD_DATE and RUNTRACE_BUILD_NAME, which packaging sets at build
time. A source checkout falls back to asking git.
"""
from __future__ import annotations

import logging
import os
import subprocess

from runtrace import __version__
from runtrace.models import BuildInfo

logger = logging.getLogger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def _git(*args: str) -> str:
    try:
        out = subprocess.run(
            ["git", *args],
            cwd=_PACKAGE_DIR,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return ""
    if out.returncode != 0:
        return ""
    return out.stdout.strip()


def current_build_info() -> BuildInfo:
    env = os.environ
    return BuildInfo(
        scm_desc=env.get("RUNTRACE_SCM_DESC") or _git("describe", "--always", "--long", "--dirty"),
        branch=env.get("RUNTRACE_SCM_BRANCH") or _git("rev-parse", "--abbrev-ref", "HEAD"),
        revision=env.get("RUNTRACE_SCM_REV") or _git("rev-parse", "HEAD"),
        build_date=env.get("RUNTRACE_BUILD_DATE", ""),
        build_name=env.get("RUNTRACE_BUILD_NAME") or f"runtrace {__version__}",
    )
