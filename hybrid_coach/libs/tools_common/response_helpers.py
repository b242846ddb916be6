"""
Response helpers for handling envelopes returned by the data-store functions.

Every function answers with either a bare document or an envelope of the
form ``{"success": bool, "data": ..., "error": ..., "code": ...}``.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests


class RemoteCallError(requests.RequestException):
    """A function answered with ``success: false``."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


def parse_api_response(resp: Dict[str, Any]) -> Tuple[bool, Optional[Any], Optional[Dict[str, Any]]]:
    """
    Parse an API response and detect success/failure.

    Returns:
        Tuple of (success, data, error_details)
    """
    if not isinstance(resp, dict):
        return False, None, {"error": "Invalid response format", "raw": str(resp)[:500]}

    success = resp.get("success", True)  # bare documents count as success
    if not success:
        error = resp.get("error", "Unknown error")
        if isinstance(error, dict):
            error = error.get("message", "Unknown error")
        return False, None, {"error": error, "code": resp.get("code")}

    data = resp["data"] if "data" in resp else resp
    return True, data, None


def unwrap(resp: Dict[str, Any]) -> Any:
    """Return the payload of a response or raise ``RemoteCallError``."""
    ok, data, error = parse_api_response(resp)
    if not ok:
        raise RemoteCallError(str(error.get("error")), code=error.get("code"))
    return data


def extract_list_from_response(resp: Any, *keys: str) -> List[Any]:
    """
    Extract a list from a nested response structure.

    Tries each key path in order (e.g., "data.items", "items", "data").
    Returns empty list if not found or not a list.

    Example:
        extract_list_from_response(resp, "data.workouts", "workouts", "data")
    """
    if isinstance(resp, list):
        return resp
    for key_path in keys:
        value = resp
        for part in key_path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None
                break

        if isinstance(value, list):
            return value

    return []
