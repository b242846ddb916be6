"""
tools_common - Shared transport utilities for the data-store clients.
"""

from .http import HttpClient
from .response_helpers import (
    RemoteCallError,
    parse_api_response,
    unwrap,
    extract_list_from_response,
)

__all__ = [
    "HttpClient",
    "RemoteCallError",
    "parse_api_response",
    "unwrap",
    "extract_list_from_response",
]
