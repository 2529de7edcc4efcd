from datetime import datetime
import logging

from sqlalchemy.orm import Session

from .schemas import LoginRequest, RegisterRequest, AuthResponse, TokenResponse
from ..core.auth import TokenService
from ..core.exceptions import ConflictError, ValidationError
from ..core.security import verify_password
from ..user import crud as user_crud
from ..user.schemas import UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session, tokens: TokenService):
        self.db = db
        self.tokens = tokens

    def _auth_response(self, user) -> AuthResponse:
        token = self.tokens.issue(user.user_id, user.username, user.role)
        return AuthResponse(token=token, user=UserResponse.model_validate(user))

    def login(self, data: LoginRequest) -> AuthResponse:
        user = user_crud.get_user_by_identifier(self.db, data.username)
        # Same message for unknown user and wrong password
        if not user or not verify_password(data.password, user.password):
            logger.warning(f"Failed login attempt for {data.username}")
            raise ValidationError("Invalid username or password")
        if not user.is_active:
            logger.warning(f"Disabled account {user.user_id} tried to log in")
            raise ValidationError("Account is disabled")

        try:
            user.last_login_at = datetime.now()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info(f"User {user.user_id} logged in")
        return self._auth_response(user)

    def register(self, data: RegisterRequest) -> AuthResponse:
        taken = user_crud.find_conflicting_field(
            self.db,
            username=data.username,
            phone=data.phone,
            email=data.email,
        )
        if taken:
            raise ConflictError(f"{taken.capitalize()} already registered")

        try:
            user = user_crud.create_user(
                self.db,
                username=data.username,
                password=data.password,
                phone=data.phone,
                email=data.email,
                nickname=data.nickname or data.username,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info(f"User {user.user_id} registered")
        return self._auth_response(user)

    def refresh(self, token: str) -> TokenResponse:
        return TokenResponse(token=self.tokens.refresh(token))
