"""Core del monitor: dominio, motor de deltas y errores."""
