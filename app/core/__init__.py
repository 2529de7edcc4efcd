# Core building blocks shared by every feature package
from .database import get_db, Base, engine, SessionLocal
from .cache import CacheStore, get_cache_store, redis_client
from .security import hash_password, verify_password

__all__ = [
    'Base', 'engine', 'get_db', 'SessionLocal',
    'verify_password', 'hash_password',
    'CacheStore', 'get_cache_store', 'redis_client'
]

# Do not import from auth.py here; feature packages import app.core.auth directly
