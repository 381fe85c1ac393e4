"""Service layer - wiring of long-lived components.

- AppContext: owns the store connection, HTTP client, pipelines and router
"""

from artaka.service.context import AppContext

__all__ = ["AppContext"]
