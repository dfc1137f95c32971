# tracker/core/supabase_client.py

from typing import Optional

from fastapi import Request
from supabase import create_client, Client

from tracker.core.config import Settings


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Extracts 'Bearer <token>' from the Authorization header, if any.
    """
    auth = request.headers.get("Authorization") or request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split(" ", 1)
    if len(parts) != 2:
        return None
    scheme, token = parts[0], parts[1]
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def create_service_client(settings: Settings) -> Client:
    """
    Service Role client (bypasses RLS). Built once at startup for the reminder sweep.
    Falls back to the anon key when no service role key is configured.
    """
    settings.require_supabase()
    return create_client(settings.supabase_url, settings.service_key)


def get_supabase_for_request(request: Request) -> Client:
    """
    New client per request, authorized with the caller's token so RLS applies.
    Cloning per request avoids sharing auth state between requests.

    In supabase-py v2 PostgREST is authorized with:
        sb.postgrest.auth(token)
    """
    settings: Settings = request.app.state.settings
    token = _extract_bearer_token(request)

    sb = create_client(settings.supabase_url, settings.supabase_key)
    if token:
        sb.postgrest.auth(token)
    return sb
