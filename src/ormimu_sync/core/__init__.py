"""Core sync engine: identity, on-device state, planning and execution."""
