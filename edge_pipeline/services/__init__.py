# Health service exports
from .health_service import HealthService, HealthCheckInterface, ShutdownState

__all__ = ["HealthService", "HealthCheckInterface", "ShutdownState"]
