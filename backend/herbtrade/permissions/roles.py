# Overview: Declarative role -> capability table consulted by the authorization gate.

# Roles not listed here (e.g., a future "hospital") get no capabilities.
ROLE_CAPABILITIES = {
    "admin": {
        "MANAGE_STAFF",
        "MANAGE_CUSTOMERS",
        "ISSUE_PASSWORD_RESET",
        "VIEW_PLATFORM_STATS",
        "VIEW_ALL_ORDERS",
        "UPDATE_ORDER_STATUS",
        "VIEW_NEAREST_AGENTS",
        "ASSIGN_DELIVERY",
        "MANAGE_PRODUCTS",
    },
    "user": {
        "PLACE_ORDER",
        "CANCEL_ORDER",
        "VIEW_OWN_ORDERS",
    },
    "delivery": {
        "VIEW_ASSIGNED_DELIVERIES",
        "VIEW_AVAILABLE_DELIVERIES",
        "CLAIM_DELIVERY",
        "UPDATE_DELIVERY_STATUS",
        "UPDATE_AGENT_LOCATION",
        "TOGGLE_AVAILABILITY",
        "UPDATE_AGENT_PROFILE",
    },
    "seller": {"MANAGE_PRODUCTS"},
    "employee": {"MANAGE_PRODUCTS"},
    "manager": {"MANAGE_PRODUCTS"},
    "supervisor": {"MANAGE_PRODUCTS"},
}
