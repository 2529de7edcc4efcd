from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional, List
import logging

from .models import User, Address
from ..core.security import hash_password

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.user_id == user_id, User.alive()).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username, User.alive()).first()


def get_user_by_phone(db: Session, phone: str) -> Optional[User]:
    return db.query(User).filter(User.phone == phone, User.alive()).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email, User.alive()).first()


def get_user_by_identifier(db: Session, identifier: str) -> Optional[User]:
    """
    Find a user by login identifier.

    1. Description:
    The login form has a single field which may hold a username, a phone
    number or an email address. The username match wins when several
    accounts match different columns.

    2. Parameters:
    - db (Session): database session
    - identifier (str): username, phone or email

    3. Returns:
    - Optional[User]: the live user, or None
    """
    candidates = (
        db.query(User)
        .filter(
            User.alive(),
            or_(User.username == identifier, User.phone == identifier, User.email == identifier),
        )
        .all()
    )
    for user in candidates:
        if user.username == identifier:
            return user
    return candidates[0] if candidates else None


def find_conflicting_field(
    db: Session,
    username: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    exclude_user_id: Optional[int] = None,
) -> Optional[str]:
    """
    Return the name of the first unique field already taken by another user.

    Soft-deleted users still hold their unique values in the table, so they
    are checked as well.
    """
    checks = (("username", User.username, username), ("phone", User.phone, phone), ("email", User.email, email))
    for field, column, value in checks:
        if not value:
            continue
        query = db.query(User).filter(column == value)
        if exclude_user_id is not None:
            query = query.filter(User.user_id != exclude_user_id)
        if query.first():
            return field
    return None


def create_user(db: Session, username: str, password: str, **fields) -> User:
    """
    Stage a new user with a hashed password. The caller commits.
    """
    db_user = User(username=username, password=hash_password(password), **fields)
    db.add(db_user)
    db.flush()
    return db_user


# Address CRUD operations
def get_addresses(db: Session, user_id: int) -> List[Address]:
    return (
        db.query(Address)
        .filter(Address.user_id == user_id, Address.alive())
        .order_by(Address.is_default.desc(), Address.address_id.desc())
        .all()
    )


def get_address(db: Session, user_id: int, address_id: int) -> Optional[Address]:
    """
    Get an address owned by ``user_id``; other users' addresses are not found.
    """
    return (
        db.query(Address)
        .filter(Address.address_id == address_id, Address.user_id == user_id, Address.alive())
        .first()
    )


def count_addresses(db: Session, user_id: int) -> int:
    return db.query(Address).filter(Address.user_id == user_id, Address.alive()).count()


def clear_default_addresses(db: Session, user_id: int, keep_address_id: Optional[int] = None) -> int:
    """
    Unset the default flag on every other live address of the user.

    Returns:
        int: number of rows changed
    """
    query = db.query(Address).filter(
        Address.user_id == user_id,
        Address.alive(),
        Address.is_default.is_(True),
    )
    if keep_address_id is not None:
        query = query.filter(Address.address_id != keep_address_id)
    return query.update({Address.is_default: False}, synchronize_session="fetch")


def get_latest_address(db: Session, user_id: int) -> Optional[Address]:
    return (
        db.query(Address)
        .filter(Address.user_id == user_id, Address.alive())
        .order_by(Address.address_id.desc())
        .first()
    )


def create_address(db: Session, user_id: int, **fields) -> Address:
    db_address = Address(user_id=user_id, **fields)
    db.add(db_address)
    db.flush()
    return db_address
