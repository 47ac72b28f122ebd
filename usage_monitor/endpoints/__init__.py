"""Módulo de endpoints HTTP.

Expone a los colaboradores de presentación la velocidad actual, las
series de uso y los reportes de periodo.
"""

from .health import router as health_router
from .usage import router as usage_router

__all__ = [
    "health_router",
    "usage_router",
]
