from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from .http import HttpClient


class AuthError(RuntimeError):
    """The caller's session is missing or was rejected."""


@dataclass(frozen=True)
class SupabaseUser:
    id: str
    email: str | None = None


class SupabaseClient:
    """Minimal PostgREST + GoTrue client authenticated with the service key."""

    def __init__(self, *, url: str, service_key: str, timeout_s: float = 15.0, retries: int = 2):
        self.http = HttpClient(
            base_url=url,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Accept": "application/json",
            },
            timeout_s=timeout_s,
            retries=retries,
        )

    def get_user(self, access_token: str | None) -> SupabaseUser:
        token = (access_token or "").strip()
        if token.lower().startswith("bearer "):
            token = token[len("bearer "):].strip()
        if not token:
            raise AuthError("No authorization header")

        try:
            resp = self.http.get("/auth/v1/user", headers={"Authorization": f"Bearer {token}"})
        except requests.RequestException as exc:
            raise AuthError(f"Could not verify session: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthError("Invalid authentication")
        data = self._decode(resp, "/auth/v1/user")
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise AuthError("Invalid authentication")
        return SupabaseUser(id=str(user_id), email=data.get("email"))

    def select(
        self,
        table: str,
        *,
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"select": "*", **(filters or {})}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        data = self._request("GET", table, params=params)
        return data if isinstance(data, list) else []

    def insert(self, table: str, rows: dict | list[dict]) -> list[dict[str, Any]]:
        data = self._request(
            "POST",
            table,
            json=rows,
            headers={"Prefer": "return=representation"},
        )
        return data if isinstance(data, list) else []

    def update(self, table: str, values: dict, *, filters: dict[str, str]) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to update without filters")
        data = self._request(
            "PATCH",
            table,
            json=values,
            params=filters,
            headers={"Prefer": "return=representation"},
        )
        return data if isinstance(data, list) else []

    def _request(self, method: str, table: str, **kwargs) -> Any:
        path = f"/rest/v1/{table}"
        try:
            resp = self.http.request(method, path, **kwargs)
        except requests.RequestException as exc:
            raise RuntimeError(f"Supabase request failed for {path}: {exc}") from exc
        return self._decode(resp, path)

    @staticmethod
    def _decode(resp: requests.Response, path: str) -> Any:
        if resp.status_code >= 400:
            raise RuntimeError(f"Supabase API error {resp.status_code} for {path}: {resp.text[:500]}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RuntimeError(f"Failed to decode JSON from Supabase for {path}: {e}")
