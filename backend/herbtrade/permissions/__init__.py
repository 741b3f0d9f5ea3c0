# Overview: Capability system package.
# Re-exports the public API used by the authorization gate.

from .categories import CapabilityCategory
from .definitions import (
    CAPABILITY_DEFINITIONS,
    STAFF_CAPABILITIES,
    ORDER_CAPABILITIES,
    DISPATCH_CAPABILITIES,
    DELIVERY_CAPABILITIES,
    CATALOG_CAPABILITIES,
)
from .roles import ROLE_CAPABILITIES
from .helpers import (
    get_all_capability_codes,
    get_capability_definition,
    validate_capability_code,
    get_role_capabilities,
    roles_with_capability,
    role_has_capability,
)

__all__ = [
    "CapabilityCategory",
    "CAPABILITY_DEFINITIONS",
    "STAFF_CAPABILITIES",
    "ORDER_CAPABILITIES",
    "DISPATCH_CAPABILITIES",
    "DELIVERY_CAPABILITIES",
    "CATALOG_CAPABILITIES",
    "ROLE_CAPABILITIES",
    "get_all_capability_codes",
    "get_capability_definition",
    "validate_capability_code",
    "get_role_capabilities",
    "roles_with_capability",
    "role_has_capability",
]
