"""Monitor runner package: headless sampling and hourly rollup.

Modules:
- config: RunnerConfig dataclass
- runner: Orchestrator (run_once, run_forever, backfill)
- cli: CLI entry point (main)
"""

from .config import RunnerConfig
from .runner import backfill, run_forever, run_once
from .cli import main

__all__ = ["RunnerConfig", "backfill", "run_forever", "run_once", "main"]
