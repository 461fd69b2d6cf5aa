"""
Health check service module.
Reports liveness and whether the process is still accepting traffic.
"""
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from abc import ABC, abstractmethod


class ShutdownState:
    """Process-wide draining flag, set when a termination signal arrives"""

    def __init__(self):
        self.draining = False
        self.signal_name: Optional[str] = None

    def begin_drain(self, signal_name: Optional[str] = None) -> None:
        self.draining = True
        self.signal_name = signal_name


class HealthCheckInterface(ABC):
    """Interface for health check operations (Dependency Inversion Principle)"""

    @abstractmethod
    async def get_basic_health(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_readiness_status(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_liveness_status(self) -> Dict[str, Any]:
        pass


class HealthService(HealthCheckInterface):
    """Health service implementation"""

    def __init__(
        self,
        shutdown_state: ShutdownState,
        service_name: str = "edge-pipeline",
        version: str = "0.1.0",
        start_time: Optional[float] = None
    ):
        self.shutdown_state = shutdown_state
        self.service_name = service_name
        self.version = version
        self.start_time = start_time if start_time is not None else time.time()

    async def get_basic_health(self) -> Dict[str, Any]:
        """Get basic health status"""
        return {
            "status": "healthy",
            "timestamp": self._get_current_timestamp(),
            "service": self.service_name,
            "version": self.version
        }

    async def get_readiness_status(self) -> Dict[str, Any]:
        """Get readiness status; not ready once shutdown has begun"""
        draining = self.shutdown_state.draining
        return {
            "status": "draining" if draining else "ready",
            "timestamp": self._get_current_timestamp(),
            "checks": {
                "lifecycle": "draining" if draining else "running"
            }
        }

    async def get_liveness_status(self) -> Dict[str, Any]:
        """Get liveness status"""
        return {
            "status": "alive",
            "timestamp": self._get_current_timestamp(),
            "uptime_seconds": round(time.time() - self.start_time, 2)
        }

    def _get_current_timestamp(self) -> str:
        """Get current UTC timestamp in ISO format"""
        return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
