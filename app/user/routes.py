from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from ..core.config import API_PREFIX
from ..core.database import get_db
from ..core.cache import CacheStore, get_cache_store
from ..core.auth import CurrentUser, get_current_user
from ..core.responses import success, created, updated, deleted
from .schemas import ProfileUpdate, PasswordUpdate, AddressCreate, AddressUpdate
from .services import UserService, AddressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/users", tags=["Users"])
address_router = APIRouter(prefix=f"{API_PREFIX}/addresses", tags=["Addresses"])


def get_user_service(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache_store)) -> UserService:
    return UserService(db, cache)


def get_address_service(db: Session = Depends(get_db)) -> AddressService:
    return AddressService(db)


@router.get("/profile")
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return success(await service.get_profile(current_user.user_id))


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return updated(await service.update_profile(current_user.user_id, data))


@router.put("/password")
async def change_password(
    data: PasswordUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current_user.user_id, data)
    return updated(message="Password updated successfully")


@address_router.get("")
async def list_addresses(
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return success(service.list_addresses(current_user.user_id))


@address_router.post("")
async def create_address(
    data: AddressCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return created(service.create_address(current_user.user_id, data))


@address_router.get("/{address_id}")
async def get_address(
    address_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return success(service.get_address(current_user.user_id, address_id))


@address_router.put("/{address_id}")
async def update_address(
    address_id: int,
    data: AddressUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return updated(service.update_address(current_user.user_id, address_id, data))


@address_router.put("/{address_id}/default")
async def set_default_address(
    address_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    return updated(service.set_default(current_user.user_id, address_id))


@address_router.delete("/{address_id}")
async def delete_address(
    address_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: AddressService = Depends(get_address_service),
):
    service.delete_address(current_user.user_id, address_id)
    return deleted()
