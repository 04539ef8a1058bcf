"""Public package exports for the :mod:`cep_label` library."""

from __future__ import annotations

__all__ = [
    "cache",
    "cli",
    "clients",
    "config",
    "constants",
    "core",
    "errors",
    "labels",
    "layout",
    "logging_setup",
    "models",
    "normalization",
    "rendering",
    "resolver",
    "telemetry",
]
