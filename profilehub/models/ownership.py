from __future__ import annotations

from enum import Enum


class OwnerKind(str, Enum):
    """Tag stored next to ``owner_id`` on polymorphic child rows."""

    PROFILE = "profile"
    EDUCATION = "education"
    PROJECT = "project"


IMAGE_OWNER_KINDS = frozenset({OwnerKind.PROFILE, OwnerKind.EDUCATION, OwnerKind.PROJECT})
PROJECT_OWNER_KINDS = frozenset({OwnerKind.PROFILE, OwnerKind.EDUCATION})
