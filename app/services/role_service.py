"""
app/services/role_service.py

Purpose: Classifies LINE users as tenant / staff / admin

- Membership seeded from LINE_ADMIN_USER_IDS / LINE_STAFF_USER_IDS
- Extended once at startup from ADMIN/OWNER accounts with a LINE id
- Additive only while the process runs (a revoked admin keeps access
  until restart)
- Ids compared case-insensitively without the "line:" prefix
"""

from typing import Dict, Iterable, Optional, Set

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.services import user_service
from utils.validation_utils import normalize_line_user_id

logger = get_logger(__name__)

ROLE_MAPPING = {
    "STAFF": ("staff",),
    "ADMIN": ("admin",),
    "OWNER": ("admin", "staff"),
}


class RoleResolver:
    """
    Holds the admin and staff sets. Every check normalizes the id first.
    """

    def __init__(self, admin_ids: Iterable[str] = (), staff_ids: Iterable[str] = ()):
        self._admins: Set[str] = set()
        self._staff: Set[str] = set()
        for user_id in admin_ids:
            self.add_admin(user_id)
        for user_id in staff_ids:
            self.add_staff(user_id)

    def is_admin(self, user_id: Optional[str]) -> bool:
        key = normalize_line_user_id(user_id)
        return bool(key) and key in self._admins

    def is_staff(self, user_id: Optional[str]) -> bool:
        key = normalize_line_user_id(user_id)
        return bool(key) and (key in self._staff or key in self._admins)

    def add_admin(self, user_id: Optional[str]) -> bool:
        key = normalize_line_user_id(user_id)
        if not key:
            return False
        self._admins.add(key)
        return True

    def add_staff(self, user_id: Optional[str]) -> bool:
        key = normalize_line_user_id(user_id)
        if not key:
            return False
        self._staff.add(key)
        return True

    def apply_role_mapping(self, user_id: str, role: str) -> Dict[str, bool]:
        """
        Grants LINE rights for an account role: STAFF -> staff,
        ADMIN -> admin, OWNER -> both.

        Raises:
            ValidationError: Unknown role or empty id
        """
        grants = ROLE_MAPPING.get((role or "").strip().upper())
        if grants is None:
            raise ValidationError(f"Unknown role: {role}")
        if not normalize_line_user_id(user_id):
            raise ValidationError("userId is required")

        if "admin" in grants:
            self.add_admin(user_id)
        if "staff" in grants:
            self.add_staff(user_id)

        logger.info(f"👮 Role {role.upper()} mapped", extra={"user_id": user_id})
        return {"isAdmin": self.is_admin(user_id), "isStaff": self.is_staff(user_id)}

    async def load_from_accounts(self) -> int:
        """
        Adds ADMIN/OWNER accounts with a linked LINE id to both sets.

        Returns:
            Number of accounts added
        """
        accounts = await user_service.list_linked_admins()
        for account in accounts:
            self.add_admin(account["line_user_id"])
            self.add_staff(account["line_user_id"])
        logger.info(f"Loaded {len(accounts)} admin/owner LINE accounts into role sets")
        return len(accounts)

    def counts(self) -> Dict[str, int]:
        return {"admins": len(self._admins), "staff": len(self._staff)}


_role_resolver: Optional[RoleResolver] = None


def get_role_resolver() -> RoleResolver:
    """
    Get or create the global role resolver seeded from settings.
    """
    global _role_resolver
    if _role_resolver is None:
        _role_resolver = RoleResolver(settings.admin_user_ids, settings.staff_user_ids)
    return _role_resolver


def set_role_resolver(resolver: Optional[RoleResolver]) -> None:
    global _role_resolver
    _role_resolver = resolver
