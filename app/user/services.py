from typing import List
import json
import logging

from sqlalchemy.orm import Session

from . import crud
from .models import Address, User
from .schemas import UserResponse, ProfileUpdate, PasswordUpdate, AddressCreate, AddressUpdate, AddressResponse
from ..core.cache import CacheStore, USER_INFO_KEY
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.invalidation_helpers import invalidate_specific_cache
from ..core.security import hash_password, verify_password

logger = logging.getLogger(__name__)

USER_INFO_CACHE_TTL = 900


class UserService:
    def __init__(self, db: Session, cache: CacheStore):
        self.db = db
        self.cache = cache

    def _get_user(self, user_id: int) -> User:
        user = crud.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, user_id: int) -> dict:
        cache_key = USER_INFO_KEY.format(user_id=user_id)
        cached_data = await self.cache.get(cache_key)
        if cached_data:
            return json.loads(cached_data)

        profile = UserResponse.model_validate(self._get_user(user_id)).model_dump(mode="json")
        await self.cache.set(cache_key, json.dumps(profile), expire=USER_INFO_CACHE_TTL)
        return profile

    async def update_profile(self, user_id: int, data: ProfileUpdate) -> UserResponse:
        user = self._get_user(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        taken = crud.find_conflicting_field(
            self.db,
            phone=changes.get("phone"),
            email=changes.get("email"),
            exclude_user_id=user_id,
        )
        if taken:
            raise ConflictError(f"{taken.capitalize()} is already in use")

        try:
            for field, value in changes.items():
                setattr(user, field, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        await invalidate_specific_cache(self.cache, [USER_INFO_KEY.format(user_id=user_id)])
        return UserResponse.model_validate(user)

    def change_password(self, user_id: int, data: PasswordUpdate) -> None:
        user = self._get_user(user_id)
        if not verify_password(data.old_password, user.password):
            raise ValidationError("Old password is incorrect")

        try:
            user.password = hash_password(data.new_password)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {user_id} changed password")


class AddressService:
    """
    Shipping addresses of one user.

    A user has at most one default address. Every write that sets the default
    clears the previous one in the same transaction, and the first address a
    user saves becomes the default.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_address(self, user_id: int, address_id: int) -> Address:
        address = crud.get_address(self.db, user_id, address_id)
        if not address:
            raise NotFoundError("Address not found")
        return address

    def list_addresses(self, user_id: int) -> List[AddressResponse]:
        return [AddressResponse.model_validate(a) for a in crud.get_addresses(self.db, user_id)]

    def get_address(self, user_id: int, address_id: int) -> AddressResponse:
        return AddressResponse.model_validate(self._get_address(user_id, address_id))

    def create_address(self, user_id: int, data: AddressCreate) -> AddressResponse:
        fields = data.model_dump()
        if crud.count_addresses(self.db, user_id) == 0:
            fields["is_default"] = True

        try:
            if fields["is_default"]:
                crud.clear_default_addresses(self.db, user_id)
            address = crud.create_address(self.db, user_id, **fields)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(address)
        return AddressResponse.model_validate(address)

    def update_address(self, user_id: int, address_id: int, data: AddressUpdate) -> AddressResponse:
        address = self._get_address(user_id, address_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        try:
            if changes.get("is_default"):
                crud.clear_default_addresses(self.db, user_id, keep_address_id=address_id)
            for field, value in changes.items():
                setattr(address, field, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(address)
        return AddressResponse.model_validate(address)

    def set_default(self, user_id: int, address_id: int) -> AddressResponse:
        return self.update_address(user_id, address_id, AddressUpdate(is_default=True))

    def delete_address(self, user_id: int, address_id: int) -> None:
        address = self._get_address(user_id, address_id)
        was_default = address.is_default

        try:
            address.soft_delete()
            address.is_default = False
            self.db.flush()
            # Hand the default over to the most recent remaining address
            if was_default:
                successor = crud.get_latest_address(self.db, user_id)
                if successor:
                    successor.is_default = True
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Address {address_id} of user {user_id} deleted")
