"""Supabase REST connector (network + auth lives here; row mapping lives in src/backend/adapters/supabase)."""

from .client import SupabaseHttpError, supabase_request
from .config import SupabaseConfig, get_supabase_config

__all__ = ["SupabaseConfig", "SupabaseHttpError", "get_supabase_config", "supabase_request"]
