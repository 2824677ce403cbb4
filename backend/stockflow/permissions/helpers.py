# Overview: Lookups over the permission catalog.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS

_BY_CODE = {perm[0]: perm for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    return list(_BY_CODE)


def get_permissions_by_category(category):
    """Catalog tuples of one category, in declaration order."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    code, name, description, category = perm
    return {"code": code, "name": name, "description": description, "category": category}


def get_role_permissions(role: str) -> frozenset:
    """Permission codes granted to a position; unknown positions get nothing."""
    return DEFAULT_ROLE_PERMISSIONS.get((role or "").upper(), frozenset())


def validate_permission_code(code) -> bool:
    return code in _BY_CODE
