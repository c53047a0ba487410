"""
Requests Module

Exports:
- RequestManager: Request CRUD and the matching workflow
- board_column / build_board: Role-dependent kanban projection
"""

from .board import board_column, build_board
from .request_manager import RequestManager, suggest_criteria

__all__ = [
    "RequestManager",
    "board_column",
    "build_board",
    "suggest_criteria",
]
