from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel, ConfigDict

from paygate.core.errors import AuthInvalid
from paygate.models.schema import Role
from paygate.shared.config import Security
from paygate.shared.logger import Logger

logger = Logger(__name__).get_logger()

ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer"
REQUIRED_CLAIMS = ["sub", "username", "role", "exp", "iat"]


class Identity(BaseModel):
    """Verified principal recovered from a session token."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: Role


class TokenService:
    """Issues and verifies stateless HS256 session tokens.

    The role is embedded at issuance; a role change only takes effect once
    the holder's current token expires.
    """

    def __init__(self, secret: str, default_ttl: timedelta = timedelta(hours=1)):
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        self.__secret = secret
        self.default_ttl = default_ttl

    @classmethod
    def from_config(cls, security: Security) -> "TokenService":
        return cls(
            security.jwt_secret,
            default_ttl=timedelta(seconds=security.token_ttl_seconds),
        )

    def issue(self, claims: Identity, ttl: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": claims.id,
            "username": claims.username,
            "role": claims.role.value,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.default_ttl),
        }
        token = jwt.encode(payload, self.__secret, algorithm=ALGORITHM)
        logger.debug("Issued token for %s (%s)", claims.username, claims.role)
        return token

    def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(
                token,
                self.__secret,
                algorithms=[ALGORITHM],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("Rejected expired token")
            raise AuthInvalid("expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected invalid token: %s", e)
            raise AuthInvalid("invalid") from e

        try:
            return Identity(
                id=payload["sub"],
                username=payload["username"],
                role=Role(payload["role"]),
            )
        except ValueError as e:
            logger.warning("Token carries unusable claims: %s", e)
            raise AuthInvalid("claims") from e

    def verify_header(self, authorization: str | None) -> Identity:
        return self.verify(bearer_token(authorization))


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthInvalid("missing header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0] != BEARER_PREFIX:
        raise AuthInvalid("malformed header")

    return parts[1]
