from .seeder import demo_summaries

__all__ = ["demo_summaries"]
