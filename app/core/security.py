import logging

import bcrypt

from .config import BCRYPT_ROUNDS
from .exceptions import ServerError

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of a password and newer releases reject longer input
BCRYPT_MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a plaintext password with bcrypt and a fresh salt.

    Args:
        password: plaintext password
        rounds: bcrypt cost factor

    Returns:
        str: the encoded bcrypt digest

    Raises:
        ServerError: if bcrypt rejects the input or the cost factor
    """
    try:
        salt = bcrypt.gensalt(rounds=rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        logger.error(f"Password hashing failed: {str(e)}")
        raise ServerError() from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    if password_too_long(plain_password):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored digest is not a bcrypt hash
        logger.warning("Stored password digest is malformed")
        return False
