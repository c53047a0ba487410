"""Authentication and Authorization module.

Provides:
- Authentication: Registration, login, password management
- RBAC (Role-Based Access Control) rules for requests and IT Flora projects
"""

from .auth_service import AuthService
from .rbac import (
    AccessLevel,
    Permission,
    ROLE_PERMISSIONS,
    has_permission,
    is_admin,
    can_edit_acceptance_criteria,
    can_view_project,
    check_project_access,
    get_project_access_level,
)

__all__ = [
    # Authentication
    "AuthService",
    # RBAC
    "AccessLevel",
    "Permission",
    "ROLE_PERMISSIONS",
    "has_permission",
    "is_admin",
    "can_edit_acceptance_criteria",
    "can_view_project",
    "check_project_access",
    "get_project_access_level",
]
