"""
Target-type discriminant carried by follow, like and review rows.

Every edge stores the tag of the entity it points at. The tag decides which
table owns the target's counters: ``user`` targets live in ``users``, every
other tag is a profile kind and lives in ``profiles``. ``family_of`` is the
only place that mapping is spelled out.
"""
from enum import StrEnum


class TargetType(StrEnum):
    user = "user"
    community = "community"
    organisation = "organisation"
    venue = "venue"
    business = "business"
    council = "council"
    government = "government"
    artist = "artist"


class EntityFamily(StrEnum):
    account = "account"
    profile = "profile"


_ACCOUNT_TARGETS = frozenset({TargetType.user})

# Entity types a profile row may carry
PROFILE_TYPES = tuple(t for t in TargetType if t not in _ACCOUNT_TARGETS)


def family_of(target_type: str) -> EntityFamily:
    """Resolve which entity table owns the counters of a target.

    Raises ValueError for an unknown tag.
    """
    tag = TargetType(target_type)
    if tag in _ACCOUNT_TARGETS:
        return EntityFamily.account
    return EntityFamily.profile
