"""Request Manager for IntelBoard.

Customer requests (tickets) and their matching workflow: creation,
visibility, status moves, specialist assignment and response,
acceptance criteria, comments, attachments, and the link to an
IT Flora project.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..auth.rbac import AccessLevel, can_edit_acceptance_criteria, check_project_access
from ..constants import (
    AC_AGREED,
    AC_DRAFT,
    AC_PROPOSED,
    DEFAULT_ADMIN_ID,
    FEEDBACK_TAG,
    REQUEST_CATEGORIES,
    REQUEST_STATUSES,
    ROLE_ADMIN,
    ROLE_GUEST,
    ROLE_SPECIALIST,
    STATUS_APPROVED,
    STATUS_NEW,
    STATUS_REFINEMENT,
    STATUS_SUBMITTED,
    URGENCY_LEVELS,
)
from ..db import DatabaseManager
from ..db.models import Request as RequestModel, User, _new_id, utc_now
from ..flora.landscape import LandscapeManager
from ..flora.models import utc_now_iso
from ...api.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SPECIALIST_ACCEPT = "Accept"
SPECIALIST_ASK = "Ask"
ACCEPTED_NOTE = "Specialist has accepted the gig layout."

# Fields a client may set on create/update
REQUEST_FIELDS = (
    "title",
    "description",
    "status",
    "industry",
    "budget",
    "tags",
    "assigned_specialist_id",
    "action_needed",
    "specialist_note",
    "linked_project_id",
    "specialist_nda_signed",
    "acceptance_criteria",
    "ac_status",
    "urgency",
    "category",
    "attributes",
    "attachments",
    "comments",
)

_JSON_LIST_FIELDS = ("tags", "acceptance_criteria", "attachments", "comments")


def suggest_criteria(request: Dict) -> List[str]:
    """Default acceptance-criteria suggestions for a request."""
    return [
        f"Define clear success metrics for {request.get('title', '')}",
        "Ensure compliance with industry standards",
        "Document all API endpoints and data flows",
        "Conduct user acceptance testing with key stakeholders",
    ]


class RequestManager:
    """Manages requests with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("RequestManager initialized")

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_request(self, data: Dict[str, Any], creator_id: Optional[str]) -> Dict:
        """Create a request; the server sets ``created_at``.

        A creator id without a user row gets a placeholder Guest user.
        """
        fields = {k: v for k, v in data.items() if k in REQUEST_FIELDS}
        if not fields.get("title") or not fields.get("description"):
            raise ValidationError("Title and description are required")
        self._validate(fields)

        with self.db.get_session() as session:
            if creator_id and not session.query(User).filter(User.id == creator_id).first():
                logger.info(f"Creator {creator_id} not found, creating placeholder user")
                session.add(User(
                    id=creator_id,
                    name="Guest User",
                    email=f"{creator_id}@placeholder.com",
                    role=ROLE_GUEST,
                ))
                session.flush()

            request_id = data.get("id") or _new_id()
            if session.query(RequestModel).filter(RequestModel.id == request_id).first():
                raise ConflictError(f"Request {request_id} already exists")

            request = RequestModel(
                id=request_id,
                title=fields["title"],
                description=fields["description"],
                industry=fields.get("industry") or "Other",
                status=fields.get("status") or STATUS_NEW,
                ac_status=fields.get("ac_status") or AC_DRAFT,
                budget=fields.get("budget"),
                tags=list(fields.get("tags") or []),
                creator_id=creator_id,
                assigned_specialist_id=fields.get("assigned_specialist_id"),
                acceptance_criteria=list(fields.get("acceptance_criteria") or []),
                urgency=fields.get("urgency"),
                category=fields.get("category"),
                attributes=dict(fields.get("attributes") or {}),
                attachments=list(fields.get("attachments") or []),
                comments=list(fields.get("comments") or []),
                created_at=utc_now(),
            )
            session.add(request)
            session.flush()

            logger.info(f"Created request: {request.id} ({request.title})")
            return self._request_to_dict(request)

    def create_feedback(
        self,
        creator_id: Optional[str],
        message: str,
        url: Optional[str] = None,
        screenshot: Optional[str] = None,
    ) -> Dict:
        """File in-app feedback as a request tagged ``Feedback``."""
        message = (message or "").strip()
        if not message:
            raise ValidationError("Message required")

        title = message[:40] + ("..." if len(message) > 40 else "")
        return self.create_request(
            {
                "id": f"fb-{_new_id()[:8]}",
                "title": f"Feedback: {title}",
                "description": f"URL: {url or ''}\n\nUser Message: {message}",
                "industry": "Other",
                "tags": [FEEDBACK_TAG],
                "urgency": "Medium",
                "category": "Other",
                "attachments": [screenshot] if screenshot else [],
            },
            creator_id,
        )

    def get_request(self, request_id: str) -> Optional[Dict]:
        with self.db.get_session() as session:
            request = session.query(RequestModel).filter(RequestModel.id == request_id).first()
            return self._request_to_dict(request) if request else None

    def update_request(self, request_id: str, fields: Dict[str, Any]) -> Dict:
        if "id" in fields or "created_at" in fields:
            raise ValidationError("Request id and created_at cannot be changed")
        unknown = set(fields) - set(REQUEST_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        self._validate(fields)

        def apply(request: RequestModel) -> None:
            for key, value in fields.items():
                if key in _JSON_LIST_FIELDS:
                    value = list(value or [])
                elif key == "attributes":
                    value = dict(value or {})
                setattr(request, key, value)

        return self._modify(request_id, apply)

    def list_requests(
        self,
        user: Optional[Dict],
        creator_ids: Optional[List[str]] = None,
        categories: Optional[List[str]] = None,
    ) -> List[Dict]:
        """Requests visible to ``user``, newest first.

        Admins see everything (optionally filtered by creator and category),
        company members see their company's requests, specialists see what
        is assigned to them, everyone else sees their own.
        """
        if not user or not user.get("user_id"):
            return []

        with self.db.get_session() as session:
            query = session.query(RequestModel)

            if user.get("role") == ROLE_ADMIN:
                if creator_ids:
                    query = query.filter(RequestModel.creator_id.in_(creator_ids))
                if categories:
                    query = query.filter(RequestModel.category.in_(categories))
            elif user.get("company_id"):
                team_ids = session.query(User.id).filter(User.company_id == user["company_id"])
                query = query.filter(RequestModel.creator_id.in_(team_ids))
            elif user.get("role") == ROLE_SPECIALIST:
                query = query.filter(RequestModel.assigned_specialist_id == user["user_id"])
            else:
                query = query.filter(RequestModel.creator_id == user["user_id"])

            requests = query.order_by(RequestModel.created_at.desc()).all()
            return [self._request_to_dict(r) for r in requests]

    # =========================================================================
    # Workflow
    # =========================================================================

    def move_status(self, request_id: str, new_status: str) -> Dict:
        if new_status not in REQUEST_STATUSES:
            raise ValidationError(f"Unknown status: {new_status}")

        def apply(request: RequestModel) -> None:
            if new_status == STATUS_SUBMITTED and not request.assigned_specialist_id:
                raise ValidationError(
                    "You must assign a specialist before moving a request to this status."
                )
            logger.info(f"Request {request_id}: {request.status} -> {new_status}")
            request.status = new_status

        return self._modify(request_id, apply)

    def assign_specialist(self, request_id: str, specialist_id: str) -> Dict:
        if not specialist_id:
            raise ValidationError("Specialist id is required")

        def apply(request: RequestModel) -> None:
            request.assigned_specialist_id = specialist_id
            request.status = STATUS_SUBMITTED

        result = self._modify(request_id, apply)
        logger.info(f"Assigned specialist {specialist_id} to request {request_id}")
        return result

    def specialist_action(
        self,
        request_id: str,
        specialist_id: str,
        action: str,
        note: Optional[str] = None,
    ) -> Dict:
        """Assigned specialist accepts the scope or asks for refinement."""
        if action not in (SPECIALIST_ACCEPT, SPECIALIST_ASK):
            raise ValidationError(f"Unknown specialist action: {action}")
        if action == SPECIALIST_ASK and not (note or "").strip():
            raise ValidationError("A note is required when asking for refinement")

        def apply(request: RequestModel) -> None:
            if request.assigned_specialist_id != specialist_id:
                raise AuthorizationError("Only the assigned specialist can respond to this request.")
            request.action_needed = True
            if action == SPECIALIST_ACCEPT:
                request.specialist_note = ACCEPTED_NOTE
                request.status = STATUS_APPROVED
            else:
                request.specialist_note = note.strip()
                request.status = STATUS_REFINEMENT

        return self._modify(request_id, apply)

    def clear_action_needed(self, request_id: str) -> Dict:
        def apply(request: RequestModel) -> None:
            request.action_needed = False

        return self._modify(request_id, apply)

    # =========================================================================
    # Acceptance criteria
    # =========================================================================

    def add_criterion(self, request_id: str, text: str, role: str) -> Dict:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Criterion text cannot be empty")

        def apply(request: RequestModel) -> None:
            self._check_ac_rights(request, role)
            request.acceptance_criteria = list(request.acceptance_criteria or []) + [text]
            request.ac_status = AC_DRAFT

        return self._modify(request_id, apply)

    def edit_criterion(self, request_id: str, index: int, text: str, role: str) -> Dict:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Criterion text cannot be empty")

        def apply(request: RequestModel) -> None:
            self._check_ac_rights(request, role)
            criteria = list(request.acceptance_criteria or [])
            self._check_index(criteria, index)
            criteria[index] = text
            request.acceptance_criteria = criteria
            request.ac_status = AC_DRAFT

        return self._modify(request_id, apply)

    def remove_criterion(self, request_id: str, index: int, role: str) -> Dict:
        def apply(request: RequestModel) -> None:
            self._check_ac_rights(request, role)
            criteria = list(request.acceptance_criteria or [])
            self._check_index(criteria, index)
            del criteria[index]
            request.acceptance_criteria = criteria
            request.ac_status = AC_DRAFT

        return self._modify(request_id, apply)

    def propose_criteria(self, request_id: str, role: str) -> Dict:
        """Append the suggested criteria and mark them Proposed."""
        def apply(request: RequestModel) -> None:
            self._check_ac_rights(request, role)
            suggestions = suggest_criteria({"title": request.title})
            request.acceptance_criteria = list(request.acceptance_criteria or []) + suggestions
            request.ac_status = AC_PROPOSED

        return self._modify(request_id, apply)

    def approve_criteria(self, request_id: str) -> Dict:
        def apply(request: RequestModel) -> None:
            request.ac_status = AC_AGREED

        return self._modify(request_id, apply)

    # =========================================================================
    # Comments and attachments
    # =========================================================================

    def add_comment(self, request_id: str, author: Dict, text: str) -> Dict:
        """Append a comment by ``author`` (session user dict)."""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be empty")

        comment = {
            "id": _new_id(),
            "text": text,
            "authorId": author.get("user_id"),
            "authorName": author.get("name"),
            "authorRole": author.get("role"),
            "createdAt": utc_now_iso(),
        }

        def apply(request: RequestModel) -> None:
            request.comments = list(request.comments or []) + [comment]

        self._modify(request_id, apply)
        return comment

    def add_attachment(self, request_id: str, name: str) -> Dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Attachment name cannot be empty")

        def apply(request: RequestModel) -> None:
            request.attachments = list(request.attachments or []) + [name]

        return self._modify(request_id, apply)

    # =========================================================================
    # IT Flora link
    # =========================================================================

    def link_project(self, request_id: str, project_id: str, landscape: LandscapeManager, user: Dict) -> Dict:
        """Link a project from the creator's landscape and share it with the platform admin.

        ``user`` needs editor access to the project.
        """
        scope = self._creator_scope(request_id)

        def share(store) -> None:
            project = store.get_project(project_id)
            allowed, message = check_project_access(user, project.to_dict(), AccessLevel.EDITOR)
            if not allowed:
                raise AuthorizationError(message)
            store.share_project(project_id, DEFAULT_ADMIN_ID)

        landscape.mutate(scope, share)

        def apply(request: RequestModel) -> None:
            request.linked_project_id = project_id

        result = self._modify(request_id, apply)
        logger.info(f"Linked project {project_id} to request {request_id}")
        return result

    def sign_nda(self, request_id: str, specialist_id: str, landscape: LandscapeManager) -> Dict:
        """Record the specialist's NDA and give them access to the linked project."""
        request = self.get_request(request_id)
        if not request:
            raise NotFoundError(f"Request {request_id} not found")
        if request["assigned_specialist_id"] != specialist_id:
            raise AuthorizationError("Only the assigned specialist can sign the NDA.")

        if request["linked_project_id"]:
            scope = self._creator_scope(request_id)
            landscape.mutate(
                scope,
                lambda store: store.share_project(request["linked_project_id"], specialist_id),
            )

        def apply(model: RequestModel) -> None:
            model.specialist_nda_signed = True

        return self._modify(request_id, apply)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _modify(self, request_id: str, apply: Callable[[RequestModel], None]) -> Dict:
        with self.db.get_session() as session:
            request = session.query(RequestModel).filter(RequestModel.id == request_id).first()
            if not request:
                raise NotFoundError(f"Request {request_id} not found")
            apply(request)
            return self._request_to_dict(request)

    def _creator_scope(self, request_id: str) -> str:
        with self.db.get_session() as session:
            request = session.query(RequestModel).filter(RequestModel.id == request_id).first()
            if not request:
                raise NotFoundError(f"Request {request_id} not found")
            creator = request.creator
            return LandscapeManager.scope_for({
                "user_id": request.creator_id,
                "company_id": creator.company_id if creator else None,
            })

    @staticmethod
    def _check_ac_rights(request: RequestModel, role: str) -> None:
        if not can_edit_acceptance_criteria(role, request.ac_status):
            raise AuthorizationError("You cannot edit the acceptance criteria of this request.")

    @staticmethod
    def _check_index(criteria: List[str], index: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(criteria):
            raise ValidationError(f"No acceptance criterion at index {index}")

    @staticmethod
    def _validate(fields: Dict[str, Any]) -> None:
        if fields.get("status") and fields["status"] not in REQUEST_STATUSES:
            raise ValidationError(f"Unknown status: {fields['status']}")
        if fields.get("urgency") and fields["urgency"] not in URGENCY_LEVELS:
            raise ValidationError(f"Unknown urgency: {fields['urgency']}")
        if fields.get("category") and fields["category"] not in REQUEST_CATEGORIES:
            raise ValidationError(f"Unknown category: {fields['category']}")

    @staticmethod
    def _request_to_dict(request: RequestModel) -> Dict:
        return {
            "id": request.id,
            "title": request.title,
            "description": request.description,
            "status": request.status,
            "industry": request.industry,
            "budget": request.budget,
            "tags": list(request.tags or []),
            "created_at": request.created_at.isoformat() if request.created_at else None,
            "creator_id": request.creator_id,
            "assigned_specialist_id": request.assigned_specialist_id,
            "action_needed": bool(request.action_needed),
            "specialist_note": request.specialist_note,
            "linked_project_id": request.linked_project_id,
            "specialist_nda_signed": bool(request.specialist_nda_signed),
            "acceptance_criteria": list(request.acceptance_criteria or []),
            "ac_status": request.ac_status,
            "urgency": request.urgency,
            "category": request.category,
            "attributes": dict(request.attributes or {}),
            "attachments": list(request.attachments or []),
            "comments": list(request.comments or []),
        }
