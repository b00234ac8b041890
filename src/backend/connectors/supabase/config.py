from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    api_key: str
    schema: str = "public"
    timeout_seconds: int = 30

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"


def get_supabase_config() -> SupabaseConfig:
    """
    Load database connection settings from environment variables.

    Reads SUPABASE_URL and SUPABASE_KEY; the dashboard's VITE_SUPABASE_URL and
    VITE_SUPABASE_ANON_KEY are accepted as fallbacks.
    """
    return SupabaseConfig(
        url=_require_env("SUPABASE_URL", "VITE_SUPABASE_URL"),
        api_key=_require_env("SUPABASE_KEY", "VITE_SUPABASE_ANON_KEY"),
        schema=os.getenv("SUPABASE_SCHEMA", "public").strip() or "public",
        timeout_seconds=int(os.getenv("SUPABASE_TIMEOUT_SECONDS", "30")),
    )


def _require_env(name: str, fallback: str | None = None) -> str:
    value = os.getenv(name, "").strip()
    if not value and fallback:
        value = os.getenv(fallback, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value
