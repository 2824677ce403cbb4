"""
Permission catalog and position defaults.

Codes are grouped by category for display. A position grants a fixed set of
codes; ADMIN holds every code.
"""

from .categories import PermissionCategory
from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, ROLES, ROLE_ADMIN, ROLE_SALES
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    get_role_permissions,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_SALES",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "get_role_permissions",
    "validate_permission_code",
]
