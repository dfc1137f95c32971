# tracker/core/auth.py

from typing import Optional, Dict, Any, Annotated

from fastapi import Header, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from tracker.api.models.user import UserOut
from tracker.core.config import Settings

# Bearer scheme so Swagger's Authorize button works
_bearer = HTTPBearer(auto_error=False)


# -------------------------
# Helpers
# -------------------------
def decode_jwt_hs256(token: str, settings: Settings) -> Dict[str, Any]:
    """
    HS256-only validation with the Supabase legacy JWT secret.
    Rejects alg != HS256, checks aud and iss (when present), requires exp and sub.
    """
    # 1) Header
    try:
        header = jwt.get_unverified_header(token)
        alg = header.get("alg")
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[JWT] Invalid header: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if alg != "HS256":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[HS256-mode] Token alg={alg}. Expected an HS256 Supabase token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not settings.supabase_jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="[HS256] SUPABASE_JWT_SECRET not configured",
        )

    # 2) Unverified payload, only to read iss
    try:
        unverified = jwt.decode(
            token,
            options={"verify_signature": False, "verify_aud": False, "verify_iss": False}
        )
        token_iss = unverified.get("iss")
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[JWT] Cannot read unverified payload: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 3) Signature + claims
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.supabase_aud,
            issuer=token_iss or f"{settings.supabase_url}/auth/v1",
            options={"require": ["exp", "sub"]},
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[HS256] Invalid token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _get_token_from_bearer(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


# -------------------------
# Router dependencies
# -------------------------
async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Security(_bearer)],
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> UserOut:
    """
    - Dev mode: X-User-Id (when ALLOW_DEV_HEADER=1)
    - Otherwise: Authorization: Bearer <HS256 token>; email comes from the token claims
    """
    settings: Settings = request.app.state.settings
    if settings.allow_dev_header and x_user_id:
        return UserOut(id=x_user_id, email=None)

    token = _get_token_from_bearer(credentials)
    payload = decode_jwt_hs256(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token payload missing 'sub'")
    return UserOut(id=user_id, email=payload.get("email") or None)
