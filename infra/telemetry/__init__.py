"""
Telemetry transports (infra adapters).

Import adapters from their module (e.g. `infra.telemetry.http_transport`)
so httpx is only loaded where it is used.
"""

__all__ = []
