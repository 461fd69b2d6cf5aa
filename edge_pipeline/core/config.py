"""
Application configuration module.
Handles environment variables and pipeline settings.
"""
from typing import List, Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    # App info
    app_name: str = "Edge Pipeline"
    app_version: str = "0.1.0"
    description: str = "HTTP edge middleware: request logging, CORS policy and error envelopes"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    shutdown_grace_period: float = 10.0

    # Environment
    environment: str = "development"
    production: bool = False

    # CORS settings
    allowed_origins: List[str] = ["*"]

    # Request logging
    log_level: Optional[str] = None
    request_id_header: str = "x-request-id"
    trust_proxy: bool = False

    @property
    def is_production(self) -> bool:
        """Production when flagged explicitly or when the environment says so"""
        return self.production or self.environment.lower() == "production"

    @property
    def resolved_log_level(self) -> str:
        """Configured log level, or the mode's default"""
        if self.log_level:
            level = self.log_level.lower()
            return "warning" if level == "warn" else level
        return "info" if self.is_production else "debug"


# Global settings instance
settings = Settings()
