from .maintenance import MaintenanceMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "MaintenanceMiddleware",
    "SecurityHeadersMiddleware",
]
