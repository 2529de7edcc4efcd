# User profile and address package
from .models import User, Address

from .crud import (
    get_user,
    get_user_by_username,
    get_user_by_identifier,
    create_user,
)

# Routers last to avoid circular imports
from .routes import router, address_router
