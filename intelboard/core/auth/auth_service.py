"""Authentication service: registration, login and password management."""

import logging
from typing import Dict, Optional

import bcrypt
from sqlalchemy.orm import Session

from ..constants import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    ROLE_CUSTOMER,
    ROLE_GUEST,
)
from ..db.models import Company, User
from ...api.core.exceptions import AuthenticationError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthService:
    """Authenticates users against bcrypt password hashes."""

    def __init__(self, db_session: Session):
        self._session = db_session

    # ========== Passwords ==========

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: Optional[str]) -> bool:
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    # ========== Users ==========

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self._session.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._session.query(User).filter(User.email == email).first()

    def register(self, name: str, email: str, password: str) -> Dict:
        """Create an account, attaching it to a company matched by e-mail domain.

        Corporate sign-ups start PENDING until a company admin approves them;
        everyone else is approved immediately as a Guest.
        """
        if not name or not email or not password:
            raise ValidationError("Missing fields")

        if self.get_user_by_email(email):
            raise ConflictError("User already exists")

        domain = email.split("@")[-1].lower() if "@" in email else ""
        company = None
        if domain:
            company = self._session.query(Company).filter(Company.domain == domain).first()

        approval_status = APPROVAL_PENDING if company else APPROVAL_APPROVED

        user = User(
            name=name,
            email=email,
            password_hash=self.hash_password(password),
            company_id=company.id if company else None,
            approval_status=approval_status,
            role=ROLE_CUSTOMER if company else ROLE_GUEST,
        )
        self._session.add(user)
        self._session.flush()

        logger.info(f"Registered user {user.id} ({email}), status={approval_status}")

        if approval_status == APPROVAL_PENDING:
            message = "Account created. Pending company approval."
        else:
            message = "Account created successfully."

        return {"user_id": user.id, "approval_status": approval_status, "message": message}

    def login(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise.

        Raises:
            AuthenticationError: credentials are valid but the account is not approved
        """
        user = self.get_user_by_email(email)
        if not user or not self.verify_password(password, user.password_hash):
            logger.info(f"Login failed for {email}")
            return None

        if user.approval_status != APPROVAL_APPROVED:
            raise AuthenticationError(f"Account is {user.approval_status.lower()}")

        logger.info(f"Login succeeded for {email}")
        return user

    def change_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = self.get_user_by_id(user_id)
        if not user or not self.verify_password(old_password, user.password_hash):
            return False

        user.password_hash = self.hash_password(new_password)
        logger.info(f"Password changed for user {user_id}")
        return True
