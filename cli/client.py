from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the pool chemistry service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def add_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/readings", json=payload).json()

    def list_readings(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/readings").json()

    def get_reading(self, reading_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/readings/{reading_id}").json()

    def get_status(self, reading_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/readings/{reading_id}/status").json()

    def get_adjustments(self, reading_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/readings/{reading_id}/adjustments").json()

    def get_compliance(self, reading_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/readings/{reading_id}/compliance").json()

    def list_drafts(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/drafts").json()

    def get_trend(self, chemical: str) -> Dict[str, Any]:
        return self._request("GET", f"/trends/{chemical}").json()

    def get_summary(self) -> Dict[str, Any]:
        return self._request("GET", "/summary").json()

    def export(self, fmt: str = "json") -> str:
        path = "/export.csv" if fmt == "csv" else "/export"
        return self._request("GET", path).text

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            if response.status_code == 404:
                raise typer.BadParameter(f"Nothing found at {path}.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        if isinstance(detail, dict):
            errors = detail.get("errors") or []
            detail = "; ".join([detail.get("message", "")] + list(errors)).strip("; ")
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
