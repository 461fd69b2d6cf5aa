"""
Header filtering module.
Redacts sensitive request headers before they reach the logs.
"""
from typing import Dict, List, Mapping, Optional, Sequence, Union

from starlette.datastructures import Headers

HeaderValue = Optional[Union[str, Sequence[str]]]

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})
REDACTED = "[REDACTED]"


def group_headers(headers: Headers) -> Dict[str, List[str]]:
    """Collect repeated header fields under a single name"""
    grouped: Dict[str, List[str]] = {}
    for name, value in headers.items():
        grouped.setdefault(name, []).append(value)
    return grouped


def filter_headers(headers: Union[Headers, Mapping[str, HeaderValue]]) -> Dict[str, str]:
    """Return a display copy of the headers with sensitive values redacted"""
    if isinstance(headers, Headers):
        headers = group_headers(headers)

    filtered: Dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() in SENSITIVE_HEADERS:
            filtered[name] = REDACTED
        elif isinstance(value, str):
            filtered[name] = value
        elif value:
            filtered[name] = ", ".join(value)
        else:
            filtered[name] = ""
    return filtered
