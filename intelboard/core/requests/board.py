"""Kanban board projection of requests.

The stored status is shared by everyone; the column a card shows up in
depends on who is looking.
"""

from typing import Dict, List

from ..constants import (
    FEEDBACK_TAG,
    REQUEST_STATUSES,
    ROLE_CUSTOMER,
    ROLE_GUEST,
    ROLE_SPECIALIST,
    STATUS_NEW,
    STATUS_SUBMITTED,
)


def board_column(request: Dict, role: str) -> str:
    status = request.get("status") or STATUS_NEW

    # A match offered to a specialist is a new gig from their side
    if role == ROLE_SPECIALIST and status == STATUS_SUBMITTED:
        return STATUS_NEW

    # Feedback is under review as soon as it is filed
    if role in (ROLE_CUSTOMER, ROLE_GUEST) and status == STATUS_NEW and FEEDBACK_TAG in (request.get("tags") or []):
        return STATUS_SUBMITTED

    return status


def build_board(requests: List[Dict], role: str) -> Dict[str, List[Dict]]:
    """Group requests into columns in board order."""
    board: Dict[str, List[Dict]] = {status: [] for status in REQUEST_STATUSES}
    for request in requests:
        board.setdefault(board_column(request, role), []).append(request)
    return board
