"""runtrace - per-run telemetry sessions for host applications."""

__version__ = "0.4.0"
