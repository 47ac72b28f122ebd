"""Consultas de uso (solo lectura)."""

from .usage_queries import UsageQueryEngine

__all__ = ["UsageQueryEngine"]
