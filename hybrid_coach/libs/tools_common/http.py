from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class HttpClient:
    base_url: str
    api_key: Optional[str] = None
    bearer_token: Optional[str] = None
    user_id: Optional[str] = None
    timeout_seconds: int = 30

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        if extra:
            headers.update(extra)
        return headers

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def post(self, path: str, json_body: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return self._request("POST", path, json_body=json_body or {}, headers=headers)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        url = self._url(path)
        logger.debug("HTTP %s %s", method, url)
        resp = requests.request(
            method,
            url,
            params=params,
            json=json_body,
            headers=self._headers(headers),
            timeout=self.timeout_seconds,
        )
        return self._handle_response(resp)

    @staticmethod
    def _handle_response(resp: requests.Response) -> Dict[str, Any]:
        text = resp.text
        try:
            data = resp.json()
        except ValueError:
            # Some functions answer with ndjson; the last line carries the result
            if "\n" in text and text.strip().startswith("{"):
                try:
                    data = json.loads(text.strip().split("\n")[-1])
                except ValueError:
                    data = {"raw": text}
            else:
                data = {"raw": text}

        if resp.status_code >= 400:
            err = data.get("error") if isinstance(data, dict) else None
            if isinstance(err, dict):
                message = err.get("message") or f"HTTP {resp.status_code}"
            elif isinstance(err, str):
                message = err
            else:
                message = text or f"HTTP {resp.status_code}"
            raise requests.HTTPError(message, response=resp)
        return data if isinstance(data, dict) else {"data": data}
