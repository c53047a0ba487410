"""Startup seeding: the platform admin and optional demo data."""

import logging

from .auth import AuthService
from .constants import (
    APPROVAL_APPROVED,
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_ID,
    DEFAULT_ADMIN_NAME,
    DEFAULT_ADMIN_PASSWORD,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_SPECIALIST,
)
from .db import Company, DatabaseManager, Request, User

logger = logging.getLogger(__name__)

DEMO_DOMAIN = "autoliv.com"
DEMO_COMPANY = "Autoliv Inc."
DEMO_PASSWORD = "password123"

DEMO_SPECIALISTS = [
    {
        "id": "spec-cloud",
        "name": "Maria Lind",
        "email": "maria.lind@example.com",
        "job_title": "Cloud Architect",
        "skills": ["AWS", "Kubernetes", "Terraform"],
        "industry": ["Automotive", "Manufacturing"],
    },
    {
        "id": "spec-data",
        "name": "Jonas Berg",
        "email": "jonas.berg@example.com",
        "job_title": "Data Engineer",
        "skills": ["Kafka", "Python", "SQL"],
        "industry": ["Finance"],
    },
    {
        "id": "spec-crm",
        "name": "Priya Nair",
        "email": "priya.nair@example.com",
        "job_title": "CRM Consultant",
        "skills": ["Salesforce", "CRM", "Integration"],
        "industry": ["Retail", "Automotive"],
    },
]

DEMO_REQUESTS = [
    {
        "title": "Migrate plant data to the cloud",
        "description": "Move on-premise manufacturing data stores to a managed cloud platform.",
        "industry": "Automotive",
        "tags": ["AWS", "Kubernetes"],
        "category": "Architecture",
        "urgency": "High",
    },
    {
        "title": "Real-time order events",
        "description": "Stream order changes from the ERP into the data warehouse.",
        "industry": "Manufacturing",
        "tags": ["Kafka", "SQL"],
        "category": "IT",
        "urgency": "Medium",
    },
]


def ensure_default_admin(db_manager: DatabaseManager) -> None:
    """Create the platform admin account if it does not exist."""
    with db_manager.get_session() as session:
        if session.query(User).filter(User.id == DEFAULT_ADMIN_ID).first():
            return
        session.add(User(
            id=DEFAULT_ADMIN_ID,
            name=DEFAULT_ADMIN_NAME,
            email=DEFAULT_ADMIN_EMAIL,
            password_hash=AuthService.hash_password(DEFAULT_ADMIN_PASSWORD),
            role=ROLE_ADMIN,
            approval_status=APPROVAL_APPROVED,
        ))
    logger.info(f"Created default admin user {DEFAULT_ADMIN_EMAIL}")


def seed_demo_data(db_manager: DatabaseManager) -> None:
    """Demo company with an admin and a customer, specialists and requests.

    Safe to run repeatedly; nothing is added once the demo company exists.
    """
    with db_manager.get_session() as session:
        if session.query(Company).filter(Company.domain == DEMO_DOMAIN).first():
            logger.info(f"Company {DEMO_COMPANY} already exists.")
            return

        password_hash = AuthService.hash_password(DEMO_PASSWORD)
        company = Company(name=DEMO_COMPANY, domain=DEMO_DOMAIN)
        session.add(company)
        session.flush()

        session.add(User(
            name="Autoliv Admin",
            email=f"admin@{DEMO_DOMAIN}",
            password_hash=password_hash,
            role=ROLE_ADMIN,
            company_id=company.id,
            approval_status=APPROVAL_APPROVED,
        ))
        customer = User(
            name="Erik Svensson",
            email=f"erik@{DEMO_DOMAIN}",
            password_hash=password_hash,
            role=ROLE_CUSTOMER,
            company_id=company.id,
            approval_status=APPROVAL_APPROVED,
        )
        session.add(customer)

        for spec in DEMO_SPECIALISTS:
            session.add(User(
                password_hash=password_hash,
                role=ROLE_SPECIALIST,
                approval_status=APPROVAL_APPROVED,
                **spec,
            ))
        session.flush()

        for data in DEMO_REQUESTS:
            session.add(Request(creator_id=customer.id, **data))

    logger.info(
        f"Seeded demo data: {DEMO_COMPANY}, {len(DEMO_SPECIALISTS)} specialists, "
        f"{len(DEMO_REQUESTS)} requests"
    )
