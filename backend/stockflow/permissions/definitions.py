# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View products, units and available stock",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_UNITS",
        "Manage Units",
        "Assign scan codes to stores and remove unsold units",
        PermissionCategory.INVENTORY,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "CREATE_SALE",
        "Create Sale",
        "Record a sale of scanned units at the employee's store",
        PermissionCategory.SALES,
    ),
    (
        "VIEW_SALES",
        "View Sales",
        "View sales history and receipts",
        PermissionCategory.SALES,
    ),
    (
        "CORRECT_SALES",
        "Correct Sales",
        "Edit recorded sales and return units to stock",
        PermissionCategory.SALES,
    ),
]


# -- TRANSFERS --

TRANSFER_PERMISSIONS = [
    (
        "CREATE_TRANSFER",
        "Create Transfer",
        "Move units from the employee's store to another store",
        PermissionCategory.TRANSFERS,
    ),
    (
        "VIEW_TRANSFERS",
        "View Transfers",
        "View transfer history",
        PermissionCategory.TRANSFERS,
    ),
    (
        "TRANSFER_ANY_STORE",
        "Transfer From Any Store",
        "Move units out of stores other than the employee's home store",
        PermissionCategory.TRANSFERS,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create, edit and deactivate catalog products",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_STORES",
        "Manage Stores",
        "Create, edit and delete stores and receipt settings",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_EXCHANGE_RATES",
        "Manage Exchange Rates",
        "Record new exchange rates",
        PermissionCategory.CATALOG,
    ),
]


# -- PURCHASING --

PURCHASING_PERMISSIONS = [
    (
        "MANAGE_SUPPLIERS",
        "Manage Suppliers",
        "Create, edit and delete suppliers",
        PermissionCategory.PURCHASING,
    ),
    (
        "MANAGE_PURCHASE_ORDERS",
        "Manage Purchase Orders",
        "Create purchase orders and register supplier payments",
        PermissionCategory.PURCHASING,
    ),
]


# -- EMPLOYEES --

EMPLOYEE_PERMISSIONS = [
    (
        "MANAGE_EMPLOYEES",
        "Manage Employees",
        "Create, edit and deactivate employee accounts",
        PermissionCategory.EMPLOYEES,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View the annual sales dashboard",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_ALL_STORES",
        "View All Stores",
        "Read stock, sales and dashboards across every store",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_MOVEMENTS",
        "View Movements",
        "View the unified sale/transfer movement history",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + SALES_PERMISSIONS
    + TRANSFER_PERMISSIONS
    + CATALOG_PERMISSIONS
    + PURCHASING_PERMISSIONS
    + EMPLOYEE_PERMISSIONS
    + REPORT_PERMISSIONS
)
