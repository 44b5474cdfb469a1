"""Subscriber store connection.

Subscribers live in a single Supabase table (SUBSCRIBERS_TABLE, "subscribers"
by default) with columns id, name, phone, region, subscription, state and
created_at. Give phone a unique index.
"""

from __future__ import annotations

import os

import settings

_client = None


def get_supabase_url() -> str:
    return settings.require_env("SUPABASE_URL")


def get_supabase_key() -> str:
    # SUPABASE_ANON_KEY only as a fallback for local runs
    return os.getenv("SUPABASE_SERVICE_ROLE_KEY") or settings.require_env("SUPABASE_ANON_KEY")


def get_subscribers_table() -> str:
    return os.getenv("SUBSCRIBERS_TABLE", "subscribers")


def get_supabase():
    """Connect once and reuse the client for the process lifetime."""
    global _client
    if _client is None:
        from supabase import create_client

        _client = create_client(get_supabase_url(), get_supabase_key())
    return _client
