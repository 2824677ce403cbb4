# Overview: Default permission sets for the two employee positions.

from .definitions import PERMISSION_DEFINITIONS

ROLE_ADMIN = "ADMIN"
ROLE_SALES = "SALES"

ROLES = (ROLE_ADMIN, ROLE_SALES)

DEFAULT_ROLE_PERMISSIONS = {
    # Elevated: everything
    ROLE_ADMIN: frozenset(perm[0] for perm in PERMISSION_DEFINITIONS),
    # Restricted: day-to-day selling at the home store
    ROLE_SALES: frozenset({
        "VIEW_INVENTORY",
        "CREATE_SALE",
        "VIEW_SALES",
        "CREATE_TRANSFER",
        "VIEW_TRANSFERS",
        "VIEW_DASHBOARD",
    }),
}
