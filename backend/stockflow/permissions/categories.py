# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and display."""
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    TRANSFERS = "TRANSFERS"
    CATALOG = "CATALOG"
    PURCHASING = "PURCHASING"
    EMPLOYEES = "EMPLOYEES"
    REPORTS = "REPORTS"
