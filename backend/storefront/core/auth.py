# storefront/core/auth.py
import logging
from typing import Optional

from fastapi import Request, HTTPException, status
from firebase_admin import auth as fb_auth

from storefront.config import get_firebase_app, settings
from storefront.schemas.principal import Principal

logger = logging.getLogger("storefront.auth")

MOCK_TOKEN_PREFIX = "mock_jwt_token_"


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Read the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_id_token(id_token: str) -> dict:
    """
    Firebase ID token verification (revocation checked).
    Mock tokens are accepted only when ALLOW_MOCK_TOKENS is on (development).
    Invalid / revoked / expired tokens -> 401.
    """
    if settings.allow_mock_tokens and id_token.startswith(MOCK_TOKEN_PREFIX):
        return _decode_mock_token(id_token)

    try:
        return fb_auth.verify_id_token(id_token, app=get_firebase_app(), check_revoked=True)
    except fb_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except fb_auth.RevokedIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session revoked")
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.UserDisabledError, fb_auth.CertificateFetchError) as exc:
        logger.info("Rejected ID token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Firebase ID token: {exc}",
        )


def _decode_mock_token(mock_token: str) -> dict:
    """
    Decode a development token.
    Format: mock_jwt_token_<uid>  (uids containing "admin" get the admin claim)
    """
    uid = mock_token[len(MOCK_TOKEN_PREFIX):]
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid mock token format",
        )
    return {
        "uid": uid,
        "user_id": uid,
        "email": None,
        "name": None,
        "firebase": {
            "sign_in_provider": "anonymous" if "anonymous" in uid else "password"
        },
        "admin": "admin" in uid,
    }


def _token_to_principal(decoded: dict) -> Principal:
    """
    Build a Principal from a decoded token.
    - anonymous provider → role='guest'
    - custom claim admin=True → role='admin'
    - otherwise → role='user'
    """
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise HTTPException(status_code=401, detail="Token missing uid.")

    firebase_info = decoded.get("firebase") or {}
    provider = firebase_info.get("sign_in_provider")
    is_admin = bool(decoded.get("admin") is True)

    if provider == "anonymous":
        role = "guest"
    elif is_admin:
        role = "admin"
    else:
        role = "user"

    return Principal(
        uid=uid,
        role=role,
        email=decoded.get("email"),
        display_name=decoded.get("name"),
    )

# --------- FastAPI Dependencies --------- #

async def get_principal(request: Request) -> Principal:
    """
    Token required: verifies and returns the Principal
    (guest/user/admin all accepted).
    """
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    decoded = _decode_id_token(token)
    return _token_to_principal(decoded)
