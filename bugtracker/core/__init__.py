"""Core security and utility modules."""

from bugtracker.core.exceptions import (
    APIException,
    AuthenticationError,
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
)
from bugtracker.core.permissions import Permission, has_permission
from bugtracker.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    # Permissions
    "Permission",
    "has_permission",
    # Exceptions
    "APIException",
    "AuthenticationError",
    "AuthorizationError",
    "BusinessRuleError",
    "ConflictError",
    "NotFoundError",
]
