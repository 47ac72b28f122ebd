"""Errores del monitor de uso.

Solo las fallas reales son excepciones. "Sin datos suficientes" e
"intervalo inválido" se representan como resultados vacíos u omitidos.
"""

from __future__ import annotations


class UsageMonitorError(Exception):
    """Base de todos los errores del monitor."""


class AdapterReadFailure(UsageMonitorError):
    """No se pudieron leer los contadores de los adaptadores de red."""


class PersistenceFailure(UsageMonitorError):
    """Una escritura o lectura contra el store falló."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store operation '{operation}' failed: {type(cause).__name__}: {cause}")


class ConfigError(UsageMonitorError):
    """Configuración inválida. Solo se lanza al arrancar."""
