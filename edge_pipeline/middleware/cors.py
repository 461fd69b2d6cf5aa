"""
CORS policy configuration module.
Handles Cross-Origin Resource Sharing settings.
"""
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Sequence, Tuple, Union

from ..policy import PolicyEvaluator, cors


@dataclass(frozen=True)
class CORSConfig:
    """CORS policy, built once at startup"""

    allow_origins: Union[str, FrozenSet[str]] = "*"
    allow_methods: Tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH")
    allow_headers: Tuple[str, ...] = (
        "Origin",
        "X-Requested-With",
        "Content-Type",
        "Accept",
        "Authorization",
        "Range",
    )
    expose_headers: Tuple[str, ...] = (
        "Content-Length",
        "Content-Range",
        "Content-Type",
        "Accept-Ranges",
    )
    allow_credentials: bool = True
    max_age: int = 86400  # 24 hours

    @classmethod
    def from_origins(cls, origins: Sequence[str]) -> "CORSConfig":
        if not origins or "*" in origins:
            return cls(allow_origins="*")
        return cls(allow_origins=frozenset(origins))

    @classmethod
    def from_settings(cls, app_settings) -> "CORSConfig":
        return cls.from_origins(app_settings.allowed_origins)

    @property
    def is_wildcard(self) -> bool:
        return self.allow_origins == "*"

    def get_policy_options(self) -> Dict[str, Any]:
        """Get evaluator configuration as kwargs"""
        return {
            "origin": self.allow_origins,
            "allow_methods": self.allow_methods,
            "allow_headers": self.allow_headers,
            "expose_headers": self.expose_headers,
            "credentials": self.allow_credentials,
            "max_age": self.max_age,
        }

    def build_evaluator(self) -> PolicyEvaluator:
        return cors(**self.get_policy_options())
