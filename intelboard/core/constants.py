"""Shared constants for IntelBoard.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Default User Configuration
# =============================================================================

# Platform admin (receives shared projects when a request is linked)
DEFAULT_ADMIN_ID = "admin1"

DEFAULT_ADMIN_NAME = "IntelBoard Admin"

DEFAULT_ADMIN_EMAIL = "admin@intelboard.com"

# Default admin password (bcrypt hashed on first start)
DEFAULT_ADMIN_PASSWORD = "admin123"

# =============================================================================
# Role Names
# =============================================================================

ROLE_ADMIN = "Admin"
ROLE_CUSTOMER = "Customer"
ROLE_SPECIALIST = "Specialist"
ROLE_GUEST = "Guest"
ROLE_USER = "User"

ROLES = (ROLE_CUSTOMER, ROLE_ADMIN, ROLE_SPECIALIST, ROLE_GUEST, ROLE_USER)

# =============================================================================
# Account Approval
# =============================================================================

APPROVAL_PENDING = "PENDING"
APPROVAL_APPROVED = "APPROVED"
APPROVAL_REJECTED = "REJECTED"

AVAILABILITY_OPTIONS = ("Available", "Busy", "Open to offers", "Away")

# =============================================================================
# Request Workflow
# =============================================================================

STATUS_NEW = "New"
STATUS_SUBMITTED = "Submitted for Review"
STATUS_REFINEMENT = "Scope Refinement Required"
STATUS_APPROVED = "Scope Approved"
STATUS_ACTIVE = "Active Efforts"
STATUS_DONE = "Done"

# Board column order
REQUEST_STATUSES = (
    STATUS_NEW,
    STATUS_SUBMITTED,
    STATUS_REFINEMENT,
    STATUS_APPROVED,
    STATUS_ACTIVE,
    STATUS_DONE,
)

AC_DRAFT = "Draft"
AC_PROPOSED = "Proposed"
AC_AGREED = "Agreed"

AC_STATUSES = (AC_DRAFT, AC_PROPOSED, AC_AGREED)

URGENCY_LEVELS = ("Low", "Medium", "High", "Critical")

REQUEST_CATEGORIES = ("IT", "CRM", "Architecture", "Finance", "Other")

FEEDBACK_TAG = "Feedback"

# =============================================================================
# IT Flora
# =============================================================================

SYSTEM_TYPES = (
    "Source System",
    "Data Warehouse",
    "Data Lake",
    "Data Vault",
    "Data Mart",
    "PBI Report",
    "Other",
)

INTEGRATION_TECHNOLOGIES = ("Kafka", "OGG", "Informatica", "API", "File Transfer", "DB Link", "Other")

INTEGRATION_MODES = ("Streaming", "Batch", "CDC", "Request/Reply", "Other")

ASSET_EXISTING = "Existing"
ASSET_PLANNED = "Planned"

VERIFIED = "Verified"
UNVERIFIED = "Unverified"
