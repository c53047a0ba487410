"""User Manager for IntelBoard.

Profiles, role changes, the specialist directory and display-name
resolution for request creators.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func

from ..constants import ROLE_ADMIN, ROLE_GUEST, ROLE_SPECIALIST, ROLES, AVAILABILITY_OPTIONS
from ..db import DatabaseManager
from ..db.models import User
from ...api.core.exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "name",
    "bio",
    "job_title",
    "skills",
    "industry",
    "experience",
    "linkedin",
    "availability",
)

# Display-name prefixes for pseudo e-mail creator ids (c1@... -> Customer 1)
_CREATOR_PREFIXES = (
    ("c", "Customer"),
    ("s", "Specialist"),
    ("a", "Agency"),
)


class UserManager:
    """Manages user profiles with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("UserManager initialized")

    # =========================================================================
    # Profiles
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[Dict]:
        with self.db.get_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            return self.user_to_dict(user) if user else None

    def update_profile(self, user_id: str, fields: Dict) -> Dict:
        """Update editable profile fields."""
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        availability = fields.get("availability")
        if availability is not None and availability not in AVAILABILITY_OPTIONS:
            raise ValidationError(f"Unknown availability: {availability}")

        with self.db.get_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFoundError(f"User {user_id} not found")

            for key, value in fields.items():
                if key in ("skills", "industry"):
                    value = list(value or [])
                setattr(user, key, value)

            logger.info(f"Updated profile for {user_id}: {sorted(fields)}")
            return self.user_to_dict(user)

    def update_role(self, requester_id: str, user_id: str, new_role: str) -> Dict:
        """Change a user's role. Only Admins may do this."""
        if new_role not in ROLES:
            raise ValidationError(f"Unknown role: {new_role}")

        with self.db.get_session() as session:
            requester = session.query(User).filter(User.id == requester_id).first()
            if not requester or requester.role != ROLE_ADMIN:
                raise AuthorizationError("Only Admins can change user roles.")

            user = session.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFoundError(f"User {user_id} not found")

            old_role = user.role
            user.role = new_role
            logger.info(f"Role of {user_id} changed {old_role} -> {new_role} by {requester_id}")
            return self.user_to_dict(user)

    # =========================================================================
    # Directory
    # =========================================================================

    def search_users(
        self,
        query: str = "",
        role: Optional[str] = None,
        skill: Optional[str] = None,
    ) -> List[Dict]:
        """Substring search over name and bio, with role and skill filters."""
        needle = (query or "").lower()
        skill_needle = (skill or "").lower()

        with self.db.get_session() as session:
            users = session.query(User).order_by(User.name).all()

            results = []
            for u in users:
                if needle and needle not in (u.name or "").lower() and needle not in (u.bio or "").lower():
                    continue
                if role and u.role != role:
                    continue
                if skill_needle and not any(skill_needle in s.lower() for s in _skill_names(u.skills)):
                    continue
                results.append(self.user_to_dict(u))
            return results

    def list_specialists(self) -> List[Dict]:
        with self.db.get_session() as session:
            users = session.query(User).filter(User.role == ROLE_SPECIALIST).order_by(User.name).all()
            return [self.user_to_dict(u) for u in users]

    def resolve_creator(self, creator_id: str) -> Optional[Dict]:
        """Best-effort display identity for a request creator id."""
        if not creator_id:
            return None

        with self.db.get_session() as session:
            user = session.query(User).filter(User.id == creator_id).first()
            if not user:
                user = session.query(User).filter(
                    func.lower(User.email) == creator_id.lower()
                ).first()
            if user:
                return self.user_to_dict(user)

        if "@" in creator_id:
            prefix = creator_id.split("@")[0]
            name = prefix[:1].upper() + prefix[1:]
            for letter, label in _CREATOR_PREFIXES:
                if prefix.lower().startswith(letter):
                    name = f"{label} {prefix[1:]}"
                    break
            return {"id": creator_id, "name": name, "role": ROLE_GUEST}

        return {"id": creator_id, "name": creator_id[:1].upper() + creator_id[1:], "role": ROLE_GUEST}

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def user_to_dict(user: User) -> Dict:
        """Convert a User ORM object to a dict (password hash excluded)."""
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "image": user.image,
            "role": user.role,
            "company_id": user.company_id,
            "approval_status": user.approval_status,
            "avatar": user.avatar,
            "skills": list(user.skills or []),
            "bio": user.bio,
            "job_title": user.job_title,
            "experience": user.experience,
            "industry": list(user.industry or []),
            "linkedin": user.linkedin,
            "availability": user.availability,
            "created_at": user.created_at.isoformat() if user.created_at else None,
        }


def _skill_names(skills) -> List[str]:
    """Skills are stored as strings or as {name, category} objects."""
    names = []
    for s in skills or []:
        if isinstance(s, dict):
            if s.get("name"):
                names.append(s["name"])
        elif s:
            names.append(str(s))
    return names
