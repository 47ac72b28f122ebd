from .monitor_loop import LoopState, MonitorLoop
from .stats import LoopStats

__all__ = ["LoopState", "LoopStats", "MonitorLoop"]
