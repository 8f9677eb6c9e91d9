"""Telemetry subsystem.

ARCHITECTURAL INVARIANT: share.py is the only module that touches the network.
Backends and the login verifier receive its functions as injectable
collaborators, so every other module runs offline and under test without a
socket.

Data flow for one application run:
  TelemetrySession -> FieldCollection -> Backend.visit_* -> Backend.complete()
"""
