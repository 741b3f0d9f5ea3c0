# Overview: Capability category constants for grouping related capabilities.


class CapabilityCategory:
    """Capability categories for organization and display."""
    STAFF = "STAFF"
    ORDERS = "ORDERS"
    DISPATCH = "DISPATCH"
    DELIVERY = "DELIVERY"
    CATALOG = "CATALOG"
    ACCOUNTS = "ACCOUNTS"
