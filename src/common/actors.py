"""
Actor identity and short-id derivation.

The short id (student number) is the join key between event tables and the
user dimension in the admin reports. It must be computed by
derive_short_id() everywhere it is stored or looked up.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

SHORT_ID_SEPARATOR = "@"


def derive_short_id(identifier: Optional[str]) -> str:
    """
    Derive the short actor id from a full identifier.

    Returns the substring before the first separator, or the whole
    string when there is no separator.

    Example:
        >>> derive_short_id("e19217@inc.kisarazu.ac.jp")
        'e19217'
    """
    if not identifier:
        return ""
    return identifier.split(SHORT_ID_SEPARATOR, 1)[0]


def build_identifier(short_id: str, domain: str) -> str:
    """Map a student number to the fixed-domain login identifier."""
    return f"{short_id.strip()}{SHORT_ID_SEPARATOR}{domain}"


@dataclass(frozen=True)
class Actor:
    """Authenticated user performing interactions."""
    id: str
    email: str
    role: str = "student"

    @property
    def short_id(self) -> str:
        return derive_short_id(self.email)

    @property
    def is_admin_role(self) -> bool:
        return self.role == "admin"

    def to_session(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "role": self.role}

    @classmethod
    def from_session(cls, data: Optional[Dict[str, Any]]) -> Optional["Actor"]:
        if not data or not data.get("id"):
            return None
        return cls(id=str(data["id"]), email=data.get("email", ""), role=data.get("role", "student"))
