import logging
from typing import Optional

import httpx

from marketplace.config import get_auth_http_timeout, get_supabase_anon_key, get_supabase_url

logger = logging.getLogger(__name__)

CODE_VERIFIER_COOKIE_SUFFIX = "-auth-token-code-verifier"


class AuthExchangeError(Exception):
    pass


def is_configured() -> bool:
    return bool(get_supabase_url() and get_supabase_anon_key())


def find_code_verifier(cookies: dict) -> Optional[str]:
    for name, value in cookies.items():
        if name.endswith(CODE_VERIFIER_COOKIE_SUFFIX):
            # supabase-js stores the verifier JSON-quoted
            return value.strip('"')
    return None


def exchange_code_for_session(code: str, code_verifier: Optional[str] = None) -> dict:
    anon_key = get_supabase_anon_key()
    payload = {"auth_code": code}
    if code_verifier:
        payload["code_verifier"] = code_verifier

    try:
        with httpx.Client(timeout=get_auth_http_timeout()) as client:
            response = client.post(
                f"{get_supabase_url()}/auth/v1/token",
                params={"grant_type": "pkce"},
                json=payload,
                headers={"apikey": anon_key, "Authorization": f"Bearer {anon_key}"},
            )
    except httpx.HTTPError as exc:
        raise AuthExchangeError(f"Auth service unreachable: {exc}") from exc

    if response.status_code != 200:
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error_description") or body.get("msg") or f"HTTP {response.status_code}"
        raise AuthExchangeError(message)

    return response.json()
