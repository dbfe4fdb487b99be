from __future__ import annotations

import logging

import httpx

from autostrm.settings import settings

logger = logging.getLogger(__name__)


class JellyfinClient:
    def __init__(self, host: str, port: int, api_key: str, timeout: float = 30):
        self.host = host
        self.port = port
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = f"http://{host}:{port}"

    def _request_attempts(self, path: str) -> list[tuple[str, dict[str, str], dict[str, str]]]:
        url = f"{self.base_url}{path}"
        attempts: list[tuple[str, dict[str, str], dict[str, str]]] = []
        if self.api_key:
            attempts.append((url, {"api_key": self.api_key}, {}))
            attempts.append((url, {}, {"X-Emby-Token": self.api_key}))

        # Local no-auth fallback for trusted loopback setups
        if self.host in {"127.0.0.1", "localhost"}:
            attempts.append((url, {}, {}))
        return attempts

    def refresh_library(self) -> None:
        attempts = self._request_attempts("/Library/Refresh")
        if not attempts:
            raise RuntimeError("JELLYFIN_API_KEY not configured")

        last_error: str | None = None
        for url, params, headers in attempts:
            try:
                resp = httpx.post(url, params=params, headers=headers, timeout=self.timeout)
                resp.raise_for_status()
                return
            except httpx.HTTPError as exc:
                last_error = str(exc)
                continue

        raise RuntimeError(last_error or "Jellyfin request failed")


def trigger_library_refresh() -> dict:
    client = JellyfinClient(
        host=settings.jellyfin_host or "127.0.0.1",
        port=settings.jellyfin_port or 8096,
        api_key=settings.jellyfin_api_key,
    )
    try:
        client.refresh_library()
    except RuntimeError as exc:
        logger.warning("Jellyfin library refresh failed: %s", exc)
        return {"ok": False, "error": f"Jellyfin refresh failed: {exc}"}
    logger.info("Jellyfin library refresh triggered")
    return {"ok": True, "message": "Jellyfin library refresh triggered"}
