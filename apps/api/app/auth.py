from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Header, HTTPException

from .config import CONFIG
from .db import ensure_user


@dataclass
class AuthContext:
    user_id: str
    user_email: Optional[str]
    access_token: str


def _jwt_secret() -> str:
    secret = os.getenv("BABYSTEPS_JWT_SECRET") or CONFIG.jwt_secret
    if not secret:
        raise RuntimeError("Missing BABYSTEPS_JWT_SECRET for token verification.")
    return secret


def _jwt_audience() -> Optional[str]:
    return os.getenv("BABYSTEPS_JWT_AUD", CONFIG.jwt_audience) or None


def _parse_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token.")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization token.")
    return parts[1]


def _verify_access_token(token: str) -> Dict[str, Any]:
    audience = _jwt_audience()
    try:
        return jwt.decode(
            token,
            _jwt_secret(),
            algorithms=["HS256"],
            audience=audience,
            options={"verify_aud": bool(audience), "require": ["sub"]},
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired token.") from exc


def issue_access_token(user_id: str, *, email: Optional[str] = None, expires_in: int = 3600) -> str:
    """Sign a short-lived token; used by local tooling and tests."""
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {"sub": user_id, "iat": now, "exp": now + timedelta(seconds=expires_in)}
    if email:
        payload["email"] = email
    audience = _jwt_audience()
    if audience:
        payload["aud"] = audience
    return jwt.encode(payload, _jwt_secret(), algorithm="HS256")


def get_auth_context(authorization: Optional[str] = Header(None)) -> AuthContext:
    token = _parse_bearer_token(authorization)
    payload = _verify_access_token(token)
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    user_email = payload.get("email")
    ensure_user(user_id, name=payload.get("name"), email=user_email)
    return AuthContext(user_id=user_id, user_email=user_email, access_token=token)
