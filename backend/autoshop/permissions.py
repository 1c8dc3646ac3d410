# Overview: Static capability definitions and the role -> capability map.
# Each capability is defined as: (code, name, description)
#
# Roles are fixed at user creation, so the mapping lives in code rather than
# in database tables.

from .models import ROLE_ADMIN, ROLE_MECHANIC


CAPABILITY_DEFINITIONS = [
    ("VIEW_CUSTOMERS", "View Customers", "List and read customers"),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create, edit and delete customers"),
    ("VIEW_VEHICLES", "View Vehicles", "List and read vehicles"),
    ("MANAGE_VEHICLES", "Manage Vehicles", "Create, edit and delete vehicles"),
    ("VIEW_INVENTORY", "View Inventory", "List inventory and low-stock items"),
    ("MANAGE_INVENTORY", "Manage Inventory", "Create, edit, restock and delete inventory items"),
    ("VIEW_ALL_WORK_ORDERS", "View All Work Orders", "Read every work order regardless of assignment"),
    ("MANAGE_WORK_ORDERS", "Manage Work Orders", "Create, edit any field of, and delete work orders"),
    ("WORK_ASSIGNED_ORDERS", "Work Assigned Orders", "Read assigned orders, change their status/description and parts"),
    ("VIEW_ALL_APPOINTMENTS", "View All Appointments", "Read every appointment regardless of assignment"),
    ("MANAGE_APPOINTMENTS", "Manage Appointments", "Create, edit and delete appointments"),
    ("WORK_ASSIGNED_APPOINTMENTS", "Work Assigned Appointments", "Read assigned appointments, change their status/description"),
    ("VIEW_BILLING", "View Billing", "Generate invoices for completed work orders"),
    ("MANAGE_USERS", "Manage Users", "Create and list staff accounts"),
]


ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset(code for code, _name, _desc in CAPABILITY_DEFINITIONS),
    ROLE_MECHANIC: frozenset({
        "VIEW_CUSTOMERS",
        "VIEW_VEHICLES",
        "VIEW_INVENTORY",
        "WORK_ASSIGNED_ORDERS",
        "WORK_ASSIGNED_APPOINTMENTS",
    }),
}


def get_all_capability_codes():
    """Get list of all capability codes."""
    return [cap[0] for cap in CAPABILITY_DEFINITIONS]


def get_role_capabilities(role: str) -> frozenset[str]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def validate_capability_code(code):
    """Check if a capability code is valid."""
    return code in get_all_capability_codes()
