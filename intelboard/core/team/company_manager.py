"""Company Manager for IntelBoard.

Companies, team membership, invitations and the member approval flow.
"""

import logging
from typing import Dict, List, Optional

from ..auth.auth_service import AuthService
from ..constants import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    ROLE_ADMIN,
    ROLE_USER,
)
from ..db import DatabaseManager
from ..db.models import Company, User
from ..notifications import Notifier
from .user_manager import UserManager
from ...api.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CompanyManager:
    """Manages companies and their members with database persistence."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        notifier: Optional[Notifier] = None,
        default_password: str = "password123",
    ):
        self.db = db_manager
        self.notifier = notifier or Notifier()
        self._default_password = default_password
        logger.info("CompanyManager initialized")

    # =========================================================================
    # Company CRUD
    # =========================================================================

    def create_company(self, name: str, domain: str, logo: Optional[str] = None) -> Dict:
        domain = (domain or "").strip().lower()
        if not name or not domain:
            raise ValidationError("Company name and domain are required")

        with self.db.get_session() as session:
            if session.query(Company).filter(Company.domain == domain).first():
                raise ConflictError(f"Company with domain '{domain}' already exists")

            company = Company(name=name, domain=domain, logo=logo)
            session.add(company)
            session.flush()

            logger.info(f"Created company: {company.id} ({name}, {domain})")
            return self._company_to_dict(company)

    def get_company(self, company_id: str) -> Optional[Dict]:
        with self.db.get_session() as session:
            company = session.query(Company).filter(Company.id == company_id).first()
            return self._company_to_dict(company) if company else None

    def get_company_by_domain(self, domain: str) -> Optional[Dict]:
        with self.db.get_session() as session:
            company = session.query(Company).filter(
                Company.domain == (domain or "").strip().lower()
            ).first()
            return self._company_to_dict(company) if company else None

    def get_company_users(self, company_id: str) -> List[Dict]:
        """List members of a company ordered by name."""
        if not company_id:
            return []

        with self.db.get_session() as session:
            users = session.query(User).filter(
                User.company_id == company_id
            ).order_by(User.name).all()
            return [UserManager.user_to_dict(u) for u in users]

    # =========================================================================
    # Membership
    # =========================================================================

    def invite_user(self, email: str, name: str, company_id: str) -> Dict:
        """Create an approved member with the default password and notify them."""
        with self.db.get_session() as session:
            self._require_company(session, company_id)

            existing = session.query(User).filter(User.email == email).first()
            if existing:
                if existing.company_id and existing.company_id != company_id:
                    raise ConflictError("User belongs to another company.")
                if existing.company_id == company_id:
                    raise ConflictError("User is already in your team.")
                raise ConflictError("User already exists.")

            user = User(
                email=email,
                name=name,
                company_id=company_id,
                password_hash=AuthService.hash_password(self._default_password),
                role=ROLE_USER,
                approval_status=APPROVAL_APPROVED,
            )
            session.add(user)
            session.flush()
            result = UserManager.user_to_dict(user)

        self.notifier.send_email(
            email,
            "You've been invited!",
            f"Welcome to the team. Login with {self._default_password}",
        )
        logger.info(f"Invited {email} to company {company_id}")
        return result

    def request_company_access(self, email: str, name: str, company_id: str) -> Dict:
        """Create a PENDING member and notify the company admins."""
        with self.db.get_session() as session:
            company = self._require_company(session, company_id)

            existing = session.query(User).filter(User.email == email).first()
            if existing:
                if existing.company_id == company_id:
                    raise ConflictError("You are already a member of this company.")
                raise ConflictError("Email already registered. Please contact support.")

            user = User(
                email=email,
                name=name,
                company_id=company_id,
                password_hash=AuthService.hash_password(self._default_password),
                role=ROLE_USER,
                approval_status=APPROVAL_PENDING,
            )
            session.add(user)
            session.flush()
            result = UserManager.user_to_dict(user)

            admins = session.query(User).filter(
                User.company_id == company_id,
                User.role == ROLE_ADMIN,
            ).all()
            admin_emails = [a.email for a in admins if a.email] or ["ADMIN"]
            company_name = company.name

        for admin_email in admin_emails:
            self.notifier.send_email(
                admin_email,
                "New Access Request",
                f"{name} ({email}) requested access to {company_name}.",
            )
        return result

    def list_pending_approvals(self, company_id: str) -> List[Dict]:
        with self.db.get_session() as session:
            users = session.query(User).filter(
                User.company_id == company_id,
                User.approval_status == APPROVAL_PENDING,
            ).order_by(User.created_at).all()
            return [UserManager.user_to_dict(u) for u in users]

    def approve_user(self, approver: Dict, user_id: str) -> Dict:
        user = self._set_approval(approver, user_id, APPROVAL_APPROVED)
        if user.get("email"):
            self.notifier.send_email(user["email"], "Access Approved!", "You can now login.")
        return user

    def reject_user(self, approver: Dict, user_id: str) -> Dict:
        return self._set_approval(approver, user_id, APPROVAL_REJECTED)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _set_approval(self, approver: Dict, user_id: str, status: str) -> Dict:
        if not approver or approver.get("role") != ROLE_ADMIN:
            raise AuthorizationError("Only Admins can approve members.")

        with self.db.get_session() as session:
            user = session.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFoundError(f"User {user_id} not found")

            approver_company = approver.get("company_id")
            if approver_company and user.company_id != approver_company:
                raise AuthorizationError("User belongs to another company.")

            user.approval_status = status
            logger.info(f"User {user_id} set to {status} by {approver.get('user_id')}")
            return UserManager.user_to_dict(user)

    @staticmethod
    def _require_company(session, company_id: str) -> Company:
        company = session.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFoundError(f"Company {company_id} not found")
        return company

    @staticmethod
    def _company_to_dict(company: Company) -> Dict:
        return {
            "id": company.id,
            "name": company.name,
            "domain": company.domain,
            "logo": company.logo,
            "created_at": company.created_at.isoformat() if company.created_at else None,
        }
