"""JWT verification for Supabase-issued access tokens."""

import json
from enum import Enum
from functools import lru_cache
from typing import Any

import jwt
from jwt import PyJWK

from tradepulse.core.config import get_settings
from tradepulse.schemas.auth import TokenPayload

SUPABASE_AUDIENCE = "authenticated"


class AuthErrorCode(str, Enum):
    """Authentication error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class AuthError(Exception):
    """JWT validation failure.

    The code is for logs and tests; clients only ever see the generic
    "Not authenticated" message.
    """

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


@lru_cache
def get_signing_key() -> PyJWK:
    """Load the public signing key from the configured JWK.

    Returns:
        PyJWK: Key (and its algorithm) used to verify access tokens.
    """
    settings = get_settings()
    jwk_json = settings.supabase_signing_key_jwk

    if not jwk_json:
        raise AuthError("Signing key not configured", AuthErrorCode.INVALID_TOKEN)

    try:
        jwk_data = json.loads(jwk_json)
    except json.JSONDecodeError as e:
        raise AuthError(f"Invalid signing key JWK format: {e}", AuthErrorCode.INVALID_TOKEN) from e

    return PyJWK.from_dict(jwk_data)


def decode_jwt(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Validates signature, expiry, issued-at, audience and required claims.

    Args:
        token: The JWT token string to decode.

    Returns:
        TokenPayload: Validated token payload.

    Raises:
        AuthError: If token is invalid, expired, or has wrong signature.
    """
    try:
        signing_key = get_signing_key()

        payload: dict[str, Any] = jwt.decode(
            token,
            signing_key.key,
            algorithms=[signing_key.algorithm_name],
            audience=SUPABASE_AUDIENCE,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iat": True,
                "require": ["exp", "iat", "sub"],
            },
        )

        return TokenPayload(
            sub=payload["sub"],
            email=payload.get("email"),
            role=payload.get("role"),
            exp=payload["exp"],
            iat=payload["iat"],
            aud=payload.get("aud"),
            iss=payload.get("iss"),
        )

    except AuthError:
        raise

    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token has expired", AuthErrorCode.TOKEN_EXPIRED) from e

    except jwt.InvalidSignatureError as e:
        raise AuthError("Invalid token signature", AuthErrorCode.INVALID_SIGNATURE) from e

    except jwt.MissingRequiredClaimError as e:
        raise AuthError(f"Token missing required claim: {e}", AuthErrorCode.INVALID_TOKEN) from e

    except jwt.DecodeError as e:
        raise AuthError(f"Invalid token format: {e}", AuthErrorCode.INVALID_TOKEN) from e

    except Exception as e:
        raise AuthError(f"Token validation failed: {e}", AuthErrorCode.INVALID_TOKEN) from e
