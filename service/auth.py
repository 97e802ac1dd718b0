from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from config.setting import settings
import error
import hashlib
import json
import logging
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi import Depends
from jose import jwe
from jose.constants import ALGORITHMS
from jose.exceptions import JOSEError
from uuid import UUID
from util.gen import derive_key_from_string
from service.redis import Redis

bearerschema = HTTPBearer()
logger = logging.getLogger(__name__)

KEY_LENGTH = 16


def _encode_value(obj):
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"{obj.__class__.__name__} cannot be stored in a token")


def _token_key() -> bytes:
    return derive_key_from_string(settings.SECRET_KEY, KEY_LENGTH)


def _now() -> float:
    return datetime.now(timezone.utc).timestamp()


def _cache_key(token: str) -> str:
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
    return f"token_payload:{digest}"


class TokenManager:
    """JWE tokens shared with the identity provider

    Only decoding is needed to serve requests; ``create_access_token``
    is kept for tooling and tests.
    """

    @staticmethod
    def create_access_token(
        data: Dict[str, Any], expires_in_minutes: Optional[int] = 60
    ) -> str:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=expires_in_minutes)
        claims = {**data, "exp": int(expires_at.timestamp())}
        try:
            token = jwe.encrypt(
                plaintext=json.dumps(claims, default=_encode_value).encode("utf-8"),
                key=_token_key(),
                algorithm=ALGORITHMS.A128KW,
                encryption=ALGORITHMS.A128CBC_HS256,
            )
        except (JOSEError, TypeError) as e:
            logger.error(f"Token encryption failed: {e}")
            raise error.ServerError("Could not create token")
        return token.decode("utf-8")

    @staticmethod
    def decode_token(token: str, check_expiry: bool = True) -> Dict[str, Any]:
        try:
            claims = json.loads(jwe.decrypt(token, _token_key()).decode("utf-8"))
        except (JOSEError, ValueError, AttributeError) as e:
            logger.warning(f"Rejected token: {e}")
            raise error.AuthenticationError("Invalid token")

        if check_expiry:
            TokenManager.ensure_not_expired(claims)
        return claims

    @staticmethod
    def ensure_not_expired(claims: Dict[str, Any]) -> None:
        expiry = claims.get("exp")
        if expiry is not None and _now() > expiry:
            expired_at = datetime.fromtimestamp(expiry, tz=timezone.utc)
            raise error.AuthenticationError(f"Token expired at {expired_at}")


def verify_access_token(
    token: HTTPAuthorizationCredentials = Depends(bearerschema),
) -> Dict[str, Any]:
    """Decoded claims of the bearer token, cached under its sha256 digest

    Cached claims never outlive the token: entries expire with it and
    are checked again on every hit.
    """
    cache = Redis()
    key = _cache_key(token.credentials)
    claims = cache.get_json(key)
    if claims:
        TokenManager.ensure_not_expired(claims)
        return claims

    claims = TokenManager.decode_token(token.credentials)
    ttl = settings.TOKEN_CACHE_SECONDS
    if claims.get("exp") is not None:
        ttl = min(ttl, int(claims["exp"] - _now()))
    if ttl > 0:
        cache.set_json(key, claims, expiry=ttl)
    return claims


def current_user_id(auth_data: dict = Depends(verify_access_token)) -> str:
    user_id = auth_data.get("user_id")
    if not user_id:
        raise error.AuthenticationError("Invalid authentication token")
    return str(user_id)
