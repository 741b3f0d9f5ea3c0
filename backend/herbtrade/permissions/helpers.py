# Overview: Utility functions for capability lookups and validation.

from .definitions import CAPABILITY_DEFINITIONS
from .roles import ROLE_CAPABILITIES


def get_all_capability_codes():
    """Get list of all capability codes."""
    return [cap[0] for cap in CAPABILITY_DEFINITIONS]


def get_capability_definition(code):
    """Get full definition for a capability code."""
    for cap in CAPABILITY_DEFINITIONS:
        if cap[0] == code:
            return {
                "code": cap[0],
                "name": cap[1],
                "description": cap[2],
                "category": cap[3],
            }
    return None


def validate_capability_code(code):
    """Check if a capability code is valid."""
    return code in get_all_capability_codes()


def get_role_capabilities(role):
    """Capabilities granted to a role; empty for unknown roles."""
    return set(ROLE_CAPABILITIES.get(role, set()))


def roles_with_capability(code):
    """Roles allowed to exercise a capability, sorted for stable output."""
    return sorted(role for role, caps in ROLE_CAPABILITIES.items() if code in caps)


def role_has_capability(role, code):
    return code in ROLE_CAPABILITIES.get(role, set())
