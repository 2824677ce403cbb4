# Overview: Service-layer permission checks and home-store confinement.

"""
Permission Checking

Permissions come from the static position map in stockflow.permissions;
there are no per-employee overrides.

DESIGN PRINCIPLES:
- Fail closed: unknown positions hold no permissions
- Checks run server-side before any write
- Denials are logged, grants are not
- Restricted employees (without VIEW_ALL_STORES) act only on their home store
"""

from __future__ import annotations

import logging

from ..permissions import get_role_permissions, validate_permission_code


logger = logging.getLogger(__name__)

ALL_STORES_PERMISSION = "VIEW_ALL_STORES"


class PermissionDeniedError(Exception):
    """Raised when the caller lacks a permission or reaches outside their home store (HTTP 403)."""
    pass


def get_employee_permissions(employee) -> frozenset:
    if employee is None or not employee.is_active:
        return frozenset()
    return get_role_permissions(employee.position)


def has_permission(employee, permission_code: str) -> bool:
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")
    return permission_code in get_employee_permissions(employee)


def require_permission(employee, permission_code: str, resource: str | None = None) -> None:
    """Raise PermissionDeniedError unless the employee holds permission_code."""
    if not has_permission(employee, permission_code):
        logger.warning(
            "Permission denied: employee=%s position=%s permission=%s resource=%s",
            getattr(employee, "id", None),
            getattr(employee, "position", None),
            permission_code,
            resource,
        )
        raise PermissionDeniedError(f"Missing permission {permission_code}")


def is_elevated(employee) -> bool:
    return ALL_STORES_PERMISSION in get_employee_permissions(employee)


def require_store_access(employee, store_id: int | None) -> None:
    """Restricted employees may only act on their home store."""
    if is_elevated(employee):
        return
    home_store_id = getattr(employee, "store_id", None)
    if home_store_id is None or store_id != home_store_id:
        logger.warning(
            "Store access denied: employee=%s home_store=%s requested_store=%s",
            getattr(employee, "id", None), home_store_id, store_id,
        )
        raise PermissionDeniedError("You can only act on your home store")


def resolve_store_scope(employee, requested_store_id: int | None) -> int | None:
    """
    Store filter for a read.

    Elevated employees get what they asked for (None means all stores).
    Restricted employees always get their home store; asking for another
    store is denied.
    """
    if is_elevated(employee):
        return requested_store_id
    if requested_store_id is not None:
        require_store_access(employee, requested_store_id)
    home_store_id = getattr(employee, "store_id", None)
    if home_store_id is None:
        raise PermissionDeniedError("No home store assigned")
    return home_store_id
