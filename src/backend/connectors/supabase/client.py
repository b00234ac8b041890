from __future__ import annotations

import json
import time
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from .config import SupabaseConfig


RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


class SupabaseHttpError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None, code: str | None = None):
        super().__init__(f"Supabase HTTP {status}: {message}")
        self.status = status
        self.body = body
        self.code = code


def supabase_request(
    config: SupabaseConfig,
    method: str,
    table: str,
    *,
    params: dict[str, Any] | None = None,
    body: Any = None,
    prefer: str | None = None,
    max_retries: int = 3,
) -> Any:
    """
    Call the PostgREST endpoint for `table` and return the decoded JSON (None on empty body).

    Only GET is retried on throttling/5xx/network errors; a retried write could create a row twice.
    """
    method = method.upper()
    retries_allowed = max_retries if method == "GET" else 0
    retries = 0
    backoff = 0.5

    data = json.dumps(body).encode("utf-8") if body is not None else None

    while True:
        req = Request(_build_url(config, table, params), data=data, method=method)
        req.add_header("Accept", "application/json")
        req.add_header("apikey", config.api_key)
        req.add_header("Authorization", f"Bearer {config.api_key}")
        if config.schema != "public":
            req.add_header("Accept-Profile", config.schema)
            req.add_header("Content-Profile", config.schema)
        if data is not None:
            req.add_header("Content-Type", "application/json")
        if prefer:
            req.add_header("Prefer", prefer)

        try:
            with urlopen(req, timeout=config.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
                return json.loads(raw) if raw.strip() else None
        except HTTPError as exc:
            raw_body = exc.read().decode("utf-8") if exc.fp else None
            status = exc.code

            if status in RETRYABLE_STATUSES and retries < retries_allowed:
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue

            code, message = _error_details(raw_body)
            raise SupabaseHttpError(status, message or str(exc.reason), raw_body, code) from exc
        except URLError as exc:
            if retries < retries_allowed:
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue
            raise SupabaseHttpError(0, str(exc)) from exc


def eq(value: Any) -> str:
    return f"eq.{value}"


def _build_url(config: SupabaseConfig, table: str, params: dict[str, Any] | None) -> str:
    url = f"{config.rest_url}/{quote(table)}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def _error_details(raw_body: str | None) -> tuple[str | None, str | None]:
    if not raw_body:
        return None, None
    try:
        payload = json.loads(raw_body)
    except ValueError:
        return None, raw_body
    if not isinstance(payload, dict):
        return None, raw_body
    code = payload.get("code")
    message = payload.get("message")
    return (str(code) if code is not None else None), (str(message) if message is not None else None)
