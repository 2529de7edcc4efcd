from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
import json
import logging

from ..core.config import API_PREFIX
from ..core.database import get_db
from ..core.cache import CacheStore, get_cache_store, USER_INFO_KEY
from ..core.auth import CurrentUser, TokenService, get_bearer_token, get_current_user, get_token_service
from ..core.responses import success, created
from ..user.services import USER_INFO_CACHE_TTL
from .schemas import LoginRequest, RegisterRequest
from .services import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["Authentication"])


def get_auth_service(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, tokens)


async def prefetch_user_info_after_login(cache: CacheStore, user_id: int, profile: dict):
    """
    Warm the profile cache right after login so the first profile read is a hit.
    """
    stored = await cache.set(USER_INFO_KEY.format(user_id=user_id), json.dumps(profile), expire=USER_INFO_CACHE_TTL)
    if stored:
        logger.debug(f"Prefetched profile of user {user_id}")


@router.post("/login")
async def login(
    login_data: LoginRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
    cache: CacheStore = Depends(get_cache_store),
):
    result = service.login(login_data)
    background_tasks.add_task(
        prefetch_user_info_after_login, cache, result.user.user_id, result.user.model_dump(mode="json")
    )
    return success(result, message="Login successful")


@router.post("/register")
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return created(service.register(data), message="Registration successful")


@router.post("/refresh-token")
async def refresh_token(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    return success(service.refresh(token), message="Token refreshed")


@router.post("/logout")
async def logout(current_user: CurrentUser = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy and it expires naturally
    logger.info(f"User {current_user.user_id} logged out")
    return success(message="Logout successful")
