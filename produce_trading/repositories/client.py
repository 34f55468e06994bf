"""
Supabase client construction.

This module contains *only* the database connection setup. It deliberately
exposes a factory instead of a module-level client: the application builds one
client at startup and passes it to the ledger store.
"""

from __future__ import annotations

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from produce_trading.config import Settings


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client from settings; raises RuntimeError if credentials are missing."""

    url, key = settings.require_supabase()
    return create_client(url, key)


__all__ = ["create_supabase_client"]
