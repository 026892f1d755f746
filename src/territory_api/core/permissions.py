"""Capability-based access control.

Capabilities are a closed set of ``(module, resource, action)`` triples.
Roles map to capability sets; endpoints depend on a single capability
rather than on a list of role names, so adding a role never touches a
router.
"""

import re
from enum import Enum, unique

_SEGMENT = re.compile(r"^[a-z][a-z_]*$")


@unique
class Capability(Enum):
    """Every action an operator can be granted."""

    STREET_RANGE_READ = ("territory", "street_range", "read")
    STREET_RANGE_VALIDATE = ("territory", "street_range", "validate")
    STREET_RANGE_WRITE = ("territory", "street_range", "write")
    STREET_RANGE_DELETE = ("territory", "street_range", "delete")
    ADDRESS_READ = ("territory", "address", "read")
    ADDRESS_RESOLVE = ("territory", "address", "resolve")
    ADDRESS_WRITE = ("territory", "address", "write")
    QUADRANT_READ = ("territory", "quadrant", "read")

    @property
    def module(self) -> str:
        return self.value[0]

    @property
    def resource(self) -> str:
        return self.value[1]

    @property
    def action(self) -> str:
        return self.value[2]

    @property
    def slug(self) -> str:
        """Dotted form used in error messages and logs, e.g. ``territory.address.write``."""
        return ".".join(self.value)


_READ_ONLY = frozenset(
    {
        Capability.STREET_RANGE_READ,
        Capability.ADDRESS_READ,
        Capability.QUADRANT_READ,
    }
)

_OPERATOR = _READ_ONLY | {
    Capability.STREET_RANGE_VALIDATE,
    Capability.ADDRESS_RESOLVE,
    Capability.ADDRESS_WRITE,
}

_SUPERVISOR = _OPERATOR | {
    Capability.STREET_RANGE_WRITE,
}

ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    "admin": frozenset(Capability),
    "supervisor": frozenset(_SUPERVISOR | {Capability.STREET_RANGE_DELETE}),
    "operator": frozenset(_OPERATOR),
    "viewer": _READ_ONLY,
}


def _check_capability_table() -> None:
    """Fail at import if a capability or role mapping is malformed."""
    for capability in Capability:
        value = capability.value
        if not isinstance(value, tuple) or len(value) != 3:
            msg = f"Capability {capability.name} must be a (module, resource, action) triple"
            raise TypeError(msg)
        for segment in value:
            if not isinstance(segment, str) or not _SEGMENT.match(segment):
                msg = f"Capability {capability.name} has invalid segment {segment!r}"
                raise ValueError(msg)
    for role, capabilities in ROLE_CAPABILITIES.items():
        stray = [c for c in capabilities if not isinstance(c, Capability)]
        if stray:
            msg = f"Role {role!r} maps to unknown capabilities: {stray}"
            raise TypeError(msg)


_check_capability_table()


def capabilities_for(role: str) -> frozenset[Capability]:
    """Return the capability set of a role; unknown roles get none."""
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: str, capability: Capability) -> bool:
    return capability in capabilities_for(role)
