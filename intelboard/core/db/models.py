"""
SQLAlchemy ORM Models for IntelBoard

Request-matching and IT landscape models:
- Company: Customer organisations, matched to users by e-mail domain
- User: Accounts with role, company membership, approval state and profile
- Request: Customer requests moving through the matching workflow
- Landscape: One IT Flora document (systems, integrations, projects) per scope
"""

from sqlalchemy import (
    Column, String, Integer, Text, TIMESTAMP, ForeignKey, Boolean, JSON, Index,
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.dialects.postgresql import JSONB
import uuid
from datetime import datetime, timezone

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current UTC time, naive to match the TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# Companies and Users
# =============================================================================

class Company(Base):
    """Customer organisation."""
    __tablename__ = "companies"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), unique=True, nullable=False)   # e.g. autoliv.com
    logo = Column(String(1024))
    created_at = Column(TIMESTAMP, default=utc_now, nullable=False)

    users = relationship("User", back_populates="company")

    def __repr__(self):
        return f"<Company(id={self.id}, domain='{self.domain}')>"


class User(Base):
    """User account with role and profile."""
    __tablename__ = "users"
    __table_args__ = (
        Index('idx_users_company', 'company_id'),
        Index('idx_users_role', 'role'),
    )

    id = Column(String(255), primary_key=True, default=_new_id)
    name = Column(String(255))
    email = Column(String(255), unique=True)
    password_hash = Column(String(255), nullable=True)
    image = Column(String(1024))
    role = Column(String(50), default="Guest", nullable=False)
    company_id = Column(String(64), ForeignKey("companies.id"), nullable=True)
    approval_status = Column(String(20), default="APPROVED", nullable=False)   # PENDING, APPROVED, REJECTED
    avatar = Column(String(1024))
    skills = Column(JSONType, default=list)
    bio = Column(Text)
    job_title = Column(String(255))
    experience = Column(Text)
    industry = Column(JSONType, default=list)
    linkedin = Column(String(1024))
    availability = Column(String(50), default="Available")
    created_at = Column(TIMESTAMP, default=utc_now, nullable=False)

    company = relationship("Company", back_populates="users")
    requests = relationship("Request", back_populates="creator")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# =============================================================================
# Requests
# =============================================================================

class Request(Base):
    """Customer request (ticket) and its matching state."""
    __tablename__ = "requests"
    __table_args__ = (
        Index('idx_requests_creator', 'creator_id', 'created_at'),
        Index('idx_requests_specialist', 'assigned_specialist_id'),
    )

    id = Column(String(64), primary_key=True, default=_new_id)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="New")
    industry = Column(String(255), nullable=False)
    budget = Column(String(255))
    tags = Column(JSONType, default=list, nullable=False)
    created_at = Column(TIMESTAMP, default=utc_now, nullable=False)
    creator_id = Column(String(255), ForeignKey("users.id"), nullable=True)
    assigned_specialist_id = Column(String(255))
    action_needed = Column(Boolean, default=False, nullable=False)
    specialist_note = Column(Text)
    linked_project_id = Column(String(64))
    specialist_nda_signed = Column(Boolean, default=False, nullable=False)
    acceptance_criteria = Column(JSONType, default=list, nullable=False)
    ac_status = Column(String(20))           # Draft, Proposed, Agreed
    urgency = Column(String(20))             # Low, Medium, High, Critical
    category = Column(String(50))            # IT, CRM, Architecture, Finance, Other
    attributes = Column(JSONType, default=dict, nullable=False)
    attachments = Column(JSONType, default=list, nullable=False)
    comments = Column(JSONType, default=list, nullable=False)

    creator = relationship("User", back_populates="requests")

    def __repr__(self):
        return f"<Request(id={self.id}, title='{self.title}', status='{self.status}')>"


# =============================================================================
# IT Flora
# =============================================================================

class Landscape(Base):
    """Persisted IT Flora document for one scope (company or user)."""
    __tablename__ = "landscapes"

    id = Column(String(64), primary_key=True, default=_new_id)
    scope = Column(String(300), unique=True, nullable=False)    # company:<id> | user:<id>
    document = Column(JSONType, default=dict, nullable=False)
    version = Column(Integer, default=0, nullable=False)
    updated_at = Column(TIMESTAMP, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Landscape(scope='{self.scope}', version={self.version})>"
