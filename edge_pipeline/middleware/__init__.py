# Middleware exports
from .logging import RequestLoggerMiddleware
from .adapter import PolicyAdapterMiddleware
from .cors import CORSConfig
from .errors import ErrorHandlingMiddleware, ErrorResponder
from .headers import filter_headers
from .response import PipelineResponse

__all__ = [
    "RequestLoggerMiddleware",
    "PolicyAdapterMiddleware",
    "CORSConfig",
    "ErrorHandlingMiddleware",
    "ErrorResponder",
    "filter_headers",
    "PipelineResponse",
]
