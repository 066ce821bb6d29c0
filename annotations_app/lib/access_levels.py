"""
Access level and role vocabulary.

Both sets are closed: annotations, documents and comments only ever carry
one of the AccessLevel members, and accounts one of the Role members.
"""

from enum import IntEnum


class AccessLevel(IntEnum):
    """Visibility tier of an annotation, document or comment."""
    PRIVATE = 1
    ORGANIZATION = 2  # comment policy only, same meaning as EXCLUSIVE there
    EXCLUSIVE = 3
    PUBLIC = 4

    @property
    def wire_name(self) -> str:
        return ACCESS_NAMES[self]


ACCESS_NAMES = {
    AccessLevel.PRIVATE: 'private',
    AccessLevel.ORGANIZATION: 'organization',
    AccessLevel.EXCLUSIVE: 'exclusive',
    AccessLevel.PUBLIC: 'public',
}

# Levels that grant visibility to an organization (and shared projects)
# when checking comment permissions
ORGANIZATION_LEVELS = frozenset({AccessLevel.EXCLUSIVE, AccessLevel.ORGANIZATION})


class Role(IntEnum):
    """Account role."""
    DISABLED = 0
    ADMINISTRATOR = 1
    CONTRIBUTOR = 2
    REVIEWER = 3
    FREELANCER = 4


# Roles whose organization may be disclosed in author attribution
PRIVILEGED_ROLES = frozenset({Role.ADMINISTRATOR, Role.CONTRIBUTOR, Role.FREELANCER})

# Roles that collaborate on everything inside their own organization
COLLABORATOR_ROLES = frozenset({Role.ADMINISTRATOR, Role.CONTRIBUTOR})


def is_privileged(role) -> bool:
    """Return True if the role belongs to the privileged tier."""
    try:
        return Role(int(role)) in PRIVILEGED_ROLES
    except (TypeError, ValueError):
        return False


def access_from_name(name: str) -> AccessLevel:
    """
    Look up an access level by its wire name.

    Raises:
        ValueError: If the name is not part of the vocabulary
    """
    for level, level_name in ACCESS_NAMES.items():
        if level_name == name:
            return level
    raise ValueError(f"Unknown access level: {name}")
