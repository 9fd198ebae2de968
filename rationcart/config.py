from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .http import HttpClient


REQUIRED_KEYS = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "GOOGLE_VISION_API_KEY",
]

# Infisical connection (read from env vars set in compose)
INFISICAL_URL = os.environ.get("INFISICAL_URL", "http://localhost:8089")
INFISICAL_CLIENT_ID = os.environ.get("INFISICAL_CLIENT_ID", "")
INFISICAL_CLIENT_SECRET = os.environ.get("INFISICAL_CLIENT_SECRET", "")
INFISICAL_PROJECT_ID = os.environ.get("INFISICAL_PROJECT_ID", "")


@dataclass(frozen=True)
class Tuning:
    """Non-secret knobs, overridable via RATIONCART_* env vars."""

    cache_ttl_hours: float = 24.0
    request_timeout_s: float = 15.0
    request_retries: int = 2
    courtesy_delay_s: float = 0.5
    batch_size: int = 4

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Tuning":
        env = os.environ if environ is None else environ
        d = Tuning()
        return Tuning(
            cache_ttl_hours=float(env.get("RATIONCART_CACHE_TTL_HOURS", d.cache_ttl_hours)),
            request_timeout_s=float(env.get("RATIONCART_REQUEST_TIMEOUT_S", d.request_timeout_s)),
            request_retries=int(env.get("RATIONCART_REQUEST_RETRIES", d.request_retries)),
            courtesy_delay_s=float(env.get("RATIONCART_COURTESY_DELAY_S", d.courtesy_delay_s)),
            batch_size=int(env.get("RATIONCART_BATCH_SIZE", d.batch_size)),
        )


@dataclass(frozen=True)
class Config:
    supabase_url: str
    supabase_service_key: str
    google_vision_api_key: str
    tuning: Tuning = Tuning()

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        return Config._from_values(_require(env), tuning=Tuning.from_env(env))

    @staticmethod
    def load_from_infisical(*, env: str = "dev") -> "Config":
        token = _infisical_login()
        secrets = _infisical_list_secrets(token, env=env)
        return Config._from_values(_require(secrets, source="Infisical"), tuning=Tuning.from_env())

    @staticmethod
    def _from_values(values: dict[str, str], *, tuning: Tuning) -> "Config":
        return Config(
            supabase_url=values["SUPABASE_URL"].rstrip("/"),
            supabase_service_key=values["SUPABASE_SERVICE_ROLE_KEY"],
            google_vision_api_key=values["GOOGLE_VISION_API_KEY"],
            tuning=tuning,
        )


def _require(values: Mapping[str, str], *, source: str = "environment") -> dict[str, str]:
    out: dict[str, str] = {}
    for k in REQUIRED_KEYS:
        if k not in values:
            raise RuntimeError(f"Missing {source} secret: {k}")
        val = values[k]
        if not val or val.strip() in {"PLACEHOLDER", "MASKED", ""}:
            raise RuntimeError(f"{source} secret {k} is still a placeholder")
        out[k] = val.strip()
    return out


def _infisical_http() -> HttpClient:
    return HttpClient(base_url=INFISICAL_URL, headers={"Accept": "application/json"}, timeout_s=15.0)


def _infisical_login() -> str:
    """Exchange the machine identity for an access token (Universal Auth)."""
    resp = _infisical_http().post(
        "/api/v1/auth/universal-auth/login",
        json={"clientId": INFISICAL_CLIENT_ID, "clientSecret": INFISICAL_CLIENT_SECRET},
    )
    if resp.status_code >= 400:
        raise RuntimeError(f"Infisical login failed with {resp.status_code}")
    return resp.json()["accessToken"]


def _infisical_list_secrets(token: str, *, env: str = "dev") -> dict[str, str]:
    resp = _infisical_http().get(
        "/api/v4/secrets",
        params={"projectId": INFISICAL_PROJECT_ID, "environment": env, "secretPath": "/"},
        headers={"Authorization": f"Bearer {token}"},
    )
    if resp.status_code >= 400:
        raise RuntimeError(f"Infisical secrets request failed with {resp.status_code}")
    return {s["secretKey"]: s["secretValue"] for s in resp.json().get("secrets", [])}
