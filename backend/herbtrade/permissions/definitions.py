# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import CapabilityCategory


# -- STAFF & ACCOUNTS --

STAFF_CAPABILITIES = [
    (
        "MANAGE_STAFF",
        "Manage Staff",
        "Create staff members and delivery agents, toggle their status",
        CapabilityCategory.STAFF,
    ),
    (
        "MANAGE_CUSTOMERS",
        "Manage Customers",
        "List customer accounts and toggle their status",
        CapabilityCategory.ACCOUNTS,
    ),
    (
        "ISSUE_PASSWORD_RESET",
        "Issue Password Reset",
        "Issue a password reset ticket for any principal",
        CapabilityCategory.ACCOUNTS,
    ),
    (
        "VIEW_PLATFORM_STATS",
        "View Platform Stats",
        "Account counts per role, order volume and revenue",
        CapabilityCategory.ACCOUNTS,
    ),
]


# -- ORDERS --

ORDER_CAPABILITIES = [
    (
        "PLACE_ORDER",
        "Place Order",
        "Create orders (reserves stock)",
        CapabilityCategory.ORDERS,
    ),
    (
        "CANCEL_ORDER",
        "Cancel Order",
        "Cancel own pending or confirmed orders (restores stock)",
        CapabilityCategory.ORDERS,
    ),
    (
        "VIEW_OWN_ORDERS",
        "View Own Orders",
        "List orders placed by the caller",
        CapabilityCategory.ORDERS,
    ),
    (
        "VIEW_ALL_ORDERS",
        "View All Orders",
        "List every order in the system",
        CapabilityCategory.ORDERS,
    ),
    (
        "UPDATE_ORDER_STATUS",
        "Update Order Status",
        "Set order status directly",
        CapabilityCategory.ORDERS,
    ),
]


# -- DISPATCH (admin side of delivery) --

DISPATCH_CAPABILITIES = [
    (
        "VIEW_NEAREST_AGENTS",
        "View Nearest Agents",
        "Rank delivery agents whose service radius covers an order",
        CapabilityCategory.DISPATCH,
    ),
    (
        "ASSIGN_DELIVERY",
        "Assign Delivery",
        "Assign a delivery agent to an order (auto or manual)",
        CapabilityCategory.DISPATCH,
    ),
]


# -- DELIVERY (agent side) --

DELIVERY_CAPABILITIES = [
    (
        "VIEW_ASSIGNED_DELIVERIES",
        "View Assigned Deliveries",
        "List orders assigned to the caller",
        CapabilityCategory.DELIVERY,
    ),
    (
        "VIEW_AVAILABLE_DELIVERIES",
        "View Available Deliveries",
        "List unassigned orders that can be claimed",
        CapabilityCategory.DELIVERY,
    ),
    (
        "CLAIM_DELIVERY",
        "Claim Delivery",
        "Self-assign an unassigned order",
        CapabilityCategory.DELIVERY,
    ),
    (
        "UPDATE_DELIVERY_STATUS",
        "Update Delivery Status",
        "Move an assigned order through pickup and delivery",
        CapabilityCategory.DELIVERY,
    ),
    (
        "UPDATE_AGENT_LOCATION",
        "Update Agent Location",
        "Report the caller's current coordinates",
        CapabilityCategory.DELIVERY,
    ),
    (
        "TOGGLE_AVAILABILITY",
        "Toggle Availability",
        "Switch the caller between available and unavailable",
        CapabilityCategory.DELIVERY,
    ),
    (
        "UPDATE_AGENT_PROFILE",
        "Update Agent Profile",
        "Edit the caller's own name and phone",
        CapabilityCategory.DELIVERY,
    ),
]


# -- CATALOG --

CATALOG_CAPABILITIES = [
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create and edit products, adjust stock",
        CapabilityCategory.CATALOG,
    ),
]


CAPABILITY_DEFINITIONS = (
    STAFF_CAPABILITIES
    + ORDER_CAPABILITIES
    + DISPATCH_CAPABILITIES
    + DELIVERY_CAPABILITIES
    + CATALOG_CAPABILITIES
)
