from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, Header, Request
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from .config import JWT_SECRET, JWT_EXPIRE_HOURS, JWT_ISSUER, JWT_ALGORITHM
from .exceptions import AuthError, ExpiredToken, ForbiddenError, InvalidToken

logger = logging.getLogger(__name__)

# Tokens signed with anything outside the HMAC family are rejected
HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]

ADMIN_ROLE = "admin"


class TokenClaims(BaseModel):
    user_id: int
    username: str
    role: str
    iss: str
    sub: str
    iat: int
    exp: int


class CurrentUser(BaseModel):
    user_id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class TokenService:
    """
    Issues and verifies signed session tokens.

    Holds nothing but its configuration, so one instance can be shared by every
    request and thread.
    """

    def __init__(self, secret: str, expire_hours: int = 24, issuer: str = "online-mall", algorithm: str = "HS256"):
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self.secret = secret
        self.expire_hours = expire_hours
        self.issuer = issuer
        self.algorithm = algorithm

    def issue(self, user_id: int, username: str, role: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "user_id": user_id,
            "username": username,
            "role": role,
            "iss": self.issuer,
            "sub": username,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=self.expire_hours),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def parse(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=HMAC_ALGORITHMS, issuer=self.issuer)
        except ExpiredSignatureError:
            raise ExpiredToken()
        except JWTError as e:
            logger.debug(f"Rejected token: {str(e)}")
            raise InvalidToken()
        try:
            return TokenClaims.model_validate(payload)
        except PydanticValidationError:
            raise InvalidToken()

    def refresh(self, token: str) -> str:
        claims = self.parse(token)
        return self.issue(claims.user_id, claims.username, claims.role)


token_service = TokenService(
    secret=JWT_SECRET,
    expire_hours=JWT_EXPIRE_HOURS,
    issuer=JWT_ISSUER,
    algorithm=JWT_ALGORITHM,
)


def get_token_service() -> TokenService:
    return token_service


def _split_bearer(authorization: Optional[str]) -> Optional[str]:
    parts = authorization.split(" ", 1) if authorization else []
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization:
        raise AuthError("Authorization header is required")
    token = _split_bearer(authorization)
    if token is None:
        raise AuthError("Authorization header format must be Bearer {token}")
    return token


async def get_current_user(
    request: Request,
    token: str = Depends(get_bearer_token),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentUser:
    claims = tokens.parse(token)
    current_user = CurrentUser(user_id=claims.user_id, username=claims.username, role=claims.role)
    request.state.current_user = current_user
    return current_user


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        logger.warning(f"User {current_user.user_id} ({current_user.username}) with role {current_user.role} tried to access an admin route")
        raise ForbiddenError("Admin privileges required")
    return current_user


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[CurrentUser]:
    """Like ``get_current_user`` but never rejects: a missing or bad token means anonymous."""
    token = _split_bearer(authorization)
    if token is None:
        return None
    try:
        claims = tokens.parse(token)
    except AuthError:
        return None
    current_user = CurrentUser(user_id=claims.user_id, username=claims.username, role=claims.role)
    request.state.current_user = current_user
    return current_user
