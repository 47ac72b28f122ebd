from .hourly_aggregator import HourlyAggregator, summarize_window

__all__ = ["HourlyAggregator", "summarize_window"]
