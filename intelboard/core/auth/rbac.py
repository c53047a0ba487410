"""RBAC (Role-Based Access Control) rules.

Roles are stored as a single string on the user row:
- Admin: Platform administrator; sees every request and project
- Customer: Submits requests, owns IT Flora projects
- Specialist: Works on requests assigned to them
- Guest: Individual without a company
- User: Company member added by invite or access request

Project access levels (IT Flora projects):
- owner: Full control including delete and share
- editor: Listed in the project's shared_with list
- viewer: Platform admin without ownership
"""

import logging
from enum import Enum
from typing import Optional

from ..constants import (
    AC_AGREED,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_GUEST,
    ROLE_SPECIALIST,
    ROLE_USER,
)

logger = logging.getLogger(__name__)


class AccessLevel(str, Enum):
    """Access levels for IT Flora projects."""
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class Permission(str, Enum):
    """System permissions."""
    # Admin permissions
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"
    MANAGE_COMPANIES = "manage_companies"
    VIEW_ALL_REQUESTS = "view_all_requests"
    ASSIGN_SPECIALISTS = "assign_specialists"
    APPROVE_MEMBERS = "approve_members"

    # User permissions
    CREATE_REQUEST = "create_request"
    EDIT_OWN_REQUEST = "edit_own_request"
    WORK_ASSIGNED = "work_assigned"
    EDIT_LANDSCAPE = "edit_landscape"


ROLE_PERMISSIONS = {
    ROLE_ADMIN: {p.value for p in Permission},
    ROLE_CUSTOMER: {
        Permission.CREATE_REQUEST.value,
        Permission.EDIT_OWN_REQUEST.value,
        Permission.EDIT_LANDSCAPE.value,
    },
    ROLE_USER: {
        Permission.CREATE_REQUEST.value,
        Permission.EDIT_OWN_REQUEST.value,
        Permission.EDIT_LANDSCAPE.value,
    },
    ROLE_GUEST: {
        Permission.CREATE_REQUEST.value,
        Permission.EDIT_OWN_REQUEST.value,
        Permission.EDIT_LANDSCAPE.value,
    },
    ROLE_SPECIALIST: {
        Permission.WORK_ASSIGNED.value,
        Permission.EDIT_LANDSCAPE.value,
    },
}

_ACCESS_HIERARCHY = {
    AccessLevel.VIEWER: 0,
    AccessLevel.EDITOR: 1,
    AccessLevel.OWNER: 2,
}


def has_permission(role: str, permission: Permission) -> bool:
    return permission.value in ROLE_PERMISSIONS.get(role, set())


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get("role") == ROLE_ADMIN


def can_edit_acceptance_criteria(role: str, ac_status: Optional[str]) -> bool:
    """Admins and specialists always; customers until the criteria are agreed."""
    if role in (ROLE_ADMIN, ROLE_SPECIALIST):
        return True
    if role in (ROLE_CUSTOMER, ROLE_GUEST, ROLE_USER):
        return ac_status != AC_AGREED
    return False


def get_project_access_level(user: Optional[dict], project: dict) -> Optional[AccessLevel]:
    """Resolve a user's access to an IT Flora project dict."""
    if not user:
        return None

    user_id = user.get("user_id")
    if project.get("ownerId") == user_id:
        return AccessLevel.OWNER
    if user_id in (project.get("sharedWith") or []):
        return AccessLevel.EDITOR
    if is_admin(user):
        return AccessLevel.VIEWER
    return None


def can_view_project(user: Optional[dict], project: dict) -> bool:
    return get_project_access_level(user, project) is not None


def check_project_access(
    user: Optional[dict],
    project: dict,
    access_level: AccessLevel = AccessLevel.VIEWER,
) -> tuple[bool, Optional[str]]:
    """Check if user has at least ``access_level`` on a project."""
    if not user:
        return False, "Authentication required"

    user_access = get_project_access_level(user, project)
    if not user_access:
        return False, "Access denied: no access to this project"

    if _ACCESS_HIERARCHY[user_access] < _ACCESS_HIERARCHY[access_level]:
        return False, f"Access denied: requires {access_level.value} access"

    return True, None
