import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse

from marketplace import supabase_auth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

DEFAULT_NEXT_PATH = "/register"
VERIFICATION_FAILED_PATH = "/auth?error=verification_failed"


def safe_next_path(next_path: Optional[str]) -> str:
    # Only same-origin relative paths; "//host" and "/\host" are protocol-relative in browsers
    if not next_path or not next_path.startswith("/") or next_path[1:2] in ("/", "\\"):
        return DEFAULT_NEXT_PATH
    return next_path


def _redirect(request: Request, path: str) -> RedirectResponse:
    origin = f"{request.url.scheme}://{request.url.netloc}"
    return RedirectResponse(url=f"{origin}{path}", status_code=307)


@router.get("/auth/callback")
def auth_callback(request: Request, code: Optional[str] = None, next_path: Optional[str] = Query(None, alias="next")):
    next_path = safe_next_path(next_path)

    if code and supabase_auth.is_configured():
        verifier = supabase_auth.find_code_verifier(request.cookies)
        try:
            supabase_auth.exchange_code_for_session(code, verifier)
        except supabase_auth.AuthExchangeError as exc:
            logger.error("Error exchanging code for session: %s", exc)
            return _redirect(request, VERIFICATION_FAILED_PATH)

    return _redirect(request, next_path)
