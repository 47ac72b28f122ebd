from .network_counters import (
    CounterSource,
    PsutilCounterSource,
    describe_adapters,
    is_physical_adapter,
    read_sample,
)

__all__ = [
    "CounterSource",
    "PsutilCounterSource",
    "describe_adapters",
    "is_physical_adapter",
    "read_sample",
]
