"""HTTP client for the Voice Canvas API."""
from __future__ import annotations

from typing import Any

import httpx


class ApiClient:
    """HTTP client for Voice Canvas API."""

    def __init__(self, api_url: str, plugin_id: str | None = None):
        self.api_url = api_url.rstrip("/")
        self.plugin_id = plugin_id
        self.client = httpx.Client(timeout=30.0)

    def _headers(self) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.plugin_id:
            headers["X-Plugin-ID"] = self.plugin_id
        return headers

    def get(self, path: str, params: dict | None = None) -> Any:
        """Make GET request."""
        url = f"{self.api_url}{path}"
        res = self.client.get(url, headers=self._headers(), params=params or {})
        res.raise_for_status()
        return res.json()

    def post(self, path: str, data: dict) -> Any:
        """Make POST request."""
        url = f"{self.api_url}{path}"
        res = self.client.post(url, json=data, headers=self._headers())
        res.raise_for_status()
        return res.json()

    def compile(self, transcript: str) -> list[dict]:
        """Compile a transcript on the server. Returns the action dicts."""
        return self.post("/api/claude", {"transcript": transcript})["actions"]

    def send_command(self, plugin_id: str, transcript: str) -> dict:
        """Queue a transcript for a plugin, as the voice capture page does."""
        return self.post("/api/commands", {"pluginId": plugin_id, "transcript": transcript})

    def plugin_status(self) -> dict:
        return self.get("/api/plugin-status")

    def close(self):
        """Close HTTP client."""
        self.client.close()


def error_detail(error: httpx.HTTPStatusError) -> str:
    """Server-provided detail for a failed request, else the status line."""
    try:
        return str(error.response.json()["detail"])
    except (ValueError, KeyError, TypeError):
        return f"HTTP {error.response.status_code}"
