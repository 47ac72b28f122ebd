"""Monitor runner configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RunnerConfig:
    """Configuración del runner headless."""
    once: bool
    backfill: bool
    duration_seconds: Optional[float] = None
