"""
Team Module

Exports:
- CompanyManager: Companies, invitations and member approvals
- UserManager: Profiles, roles and the user directory
"""

from .company_manager import CompanyManager
from .user_manager import UserManager

__all__ = [
    "CompanyManager",
    "UserManager",
]
