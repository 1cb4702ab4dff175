# File: busbuzz/services/lifecycle.py
"""Report lifecycle: creation rules, status transitions, whitelisted edits,
conversation threads and deletion.

All mutations of an existing report run as a mutator inside
``ReportStore.update_atomic``, so authorization and transition checks always
see the value read at the writer's own turn.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from busbuzz.core.errors import (
    Forbidden,
    InvalidTransition,
    NotFound,
    ReportClosed,
    ValidationError,
)
from busbuzz.core.security import Principal
from busbuzz.models.report import ClaimStatus, FeedbackStatus, ReportKind
from busbuzz.schemas.report import AttachmentRef, ConversationEntry, ReportDoc, Resolution
from busbuzz.services.report_store import ReportStore

logger = logging.getLogger(__name__)

FEEDBACK = ReportKind.feedback.value
LOST = ReportKind.lost.value
FOUND = ReportKind.found.value
KINDS = (FEEDBACK, LOST, FOUND)

PENDING = FeedbackStatus.pending.value
IN_PROGRESS = FeedbackStatus.in_progress.value
CLOSED = FeedbackStatus.closed.value
UNCLAIMED = ClaimStatus.unclaimed.value
CLAIMED = ClaimStatus.claimed.value

TRANSITIONS = {
    FEEDBACK: {(PENDING, IN_PROGRESS), (PENDING, CLOSED), (IN_PROGRESS, CLOSED)},
    FOUND: {(UNCLAIMED, CLAIMED)},
    # lost items are deleted by their reporter, never transitioned
    LOST: set(),
}

FIELD_WHITELIST = {
    FEEDBACK: {"status", "description", "route", "bus_no", "issue"},
    FOUND: {"status", "description", "route", "item"},
    LOST: {"description", "route", "item"},
}

REQUIRED_FIELDS = {
    FEEDBACK: ("route", "bus_no", "issue"),
    LOST: ("item", "route", "description"),
    FOUND: ("item", "route", "description"),
}

_KEY_ALIASES = {"busNo": "bus_no"}

SYSTEM_AUTHOR = "System"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def can_transition(kind: str, current: Optional[str], new: str) -> bool:
    return (current, new) in TRANSITIONS.get(kind, set())


def is_owner(doc: ReportDoc, actor: Principal) -> bool:
    return doc.author_user_id is not None and doc.author_user_id == actor.user_id


class LifecycleEngine:
    def __init__(self, store: ReportStore, directory=None):
        self.store = store
        self.directory = directory

    # ---- helpers ----

    def _check_route(self, route: Optional[str], report_id: Optional[int] = None) -> None:
        # soft check: an unknown route is logged, never rejected
        if self.directory is None or _blank(route):
            return
        if not self.directory.route_exists(route):
            logger.warning("Report %s references unknown route %r", report_id, route)

    @staticmethod
    def _owner_or_admin(doc: ReportDoc, actor: Principal) -> None:
        if not (actor.is_admin or is_owner(doc, actor)):
            raise Forbidden()

    @staticmethod
    def _apply_transition(doc: ReportDoc, actor: Principal, new_status: str,
                          note: Optional[str] = None) -> ReportDoc:
        old_status = doc.status
        if doc.kind == LOST:
            raise InvalidTransition("Lost items have no status; delete the report instead")
        if not can_transition(doc.kind, old_status, new_status):
            raise InvalidTransition(f'Cannot change status from "{old_status}" to "{new_status}"')

        now = _now()
        doc.status = new_status
        if doc.kind == FEEDBACK and new_status == CLOSED:
            doc.resolution = Resolution(text=note, resolved_by=actor.name, resolved_on=now)
        doc.conversation.append(ConversationEntry(
            author_name=SYSTEM_AUTHOR,
            message=f'Status changed from "{old_status}" to "{new_status}" by {actor.name}.',
            timestamp=now,
        ))
        return doc

    # ---- operations ----

    def create_report(self, kind: str, fields: Dict[str, Any], actor: Principal) -> ReportDoc:
        if kind not in KINDS:
            raise ValidationError(fields=["kind"])

        missing = [name for name in REQUIRED_FIELDS[kind] if _blank(fields.get(name))]
        attachments = [AttachmentRef.model_validate(a) for a in fields.get("attachments") or []]
        if kind == FEEDBACK and not attachments:
            missing.append("attachments")
        if missing:
            raise ValidationError(fields=missing)

        status = None
        if kind == FEEDBACK:
            status = PENDING
        elif kind == FOUND:
            status = fields.get("status") or UNCLAIMED
            if status not in (UNCLAIMED, CLAIMED):
                raise ValidationError("Invalid status for a found item", fields=["status"])
        elif fields.get("status"):
            raise ValidationError("Lost items do not carry a status", fields=["status"])

        values = dict(
            kind=kind,
            author_user_id=actor.user_id,
            author_name=actor.name,
            route=fields["route"].strip(),
            description=(fields.get("description") or "").strip() or None,
            attachments=attachments,
            status=status,
            submitted_on=_now(),
        )
        if kind == FEEDBACK:
            values.update(
                bus_no=fields["bus_no"].strip(),
                issue=fields["issue"].strip(),
                details=fields.get("details"),
            )
        else:
            values["item"] = fields["item"].strip()
        doc = ReportDoc.model_validate(values)

        self._check_route(doc.route)
        created = self.store.insert(doc)
        logger.info("Created %s report %s by user %s", kind, created.id, actor.user_id)
        return created

    def get_report(self, report_id: int, actor: Principal) -> ReportDoc:
        doc = self.store.get(report_id)
        if doc is None:
            raise NotFound("Report not found")
        self._owner_or_admin(doc, actor)
        return doc

    def update_status(self, report_id: int, actor: Principal, new_status: str,
                      resolution_note: Optional[str] = None) -> ReportDoc:
        """Move a report along its state machine.

        Admins may take any defined transition. The author may only close
        their own report. Closing a feedback records the resolution; every
        transition appends one system entry to the conversation.
        """
        seen = {}

        def mutate(doc: ReportDoc) -> ReportDoc:
            if not actor.is_admin:
                if not is_owner(doc, actor) or new_status != CLOSED:
                    raise Forbidden("Only an admin may make this status change")
            seen["from"] = doc.status
            return self._apply_transition(doc, actor, new_status, resolution_note)

        updated = self.store.update_atomic(report_id, mutate)
        logger.info("Report %s status %s -> %s by user %s",
                    report_id, seen.get("from"), updated.status, actor.user_id)
        return updated

    def update_fields(self, report_id: int, actor: Principal, patch: Dict[str, Any]) -> ReportDoc:
        """Admin edit limited to the kind's whitelist; other keys are dropped."""
        patch = {_KEY_ALIASES.get(k, k): v for k, v in (patch or {}).items()}
        note = patch.pop("resolution", None)

        def mutate(doc: ReportDoc) -> ReportDoc:
            if not actor.is_admin:
                raise Forbidden("Only an admin may edit reports")
            allowed = FIELD_WHITELIST[doc.kind]
            applied = {k: v for k, v in patch.items() if k in allowed}
            dropped = sorted(set(patch) - set(applied))
            if dropped:
                logger.debug("Dropping non-whitelisted fields %s for report %s", dropped, report_id)

            blank = [k for k, v in applied.items() if _blank(v)]
            if blank:
                raise ValidationError(fields=blank)

            new_status = applied.pop("status", None)
            for name, value in applied.items():
                setattr(doc, name, value.strip() if isinstance(value, str) else value)
            if new_status is not None and new_status != doc.status:
                self._apply_transition(doc, actor, new_status, note)
            return doc

        updated = self.store.update_atomic(report_id, mutate)
        if "route" in patch:
            self._check_route(updated.route, report_id)
        return updated

    def append_conversation_entry(self, report_id: int, actor: Principal, message: Optional[str],
                                  attachment: Optional[Any] = None) -> ReportDoc:
        message = (message or "").strip()
        if not message and not attachment:
            raise ValidationError("A message or an attachment is required",
                                  fields=["message", "attachment"])
        ref = AttachmentRef.model_validate(attachment) if attachment else None

        def mutate(doc: ReportDoc) -> ReportDoc:
            self._owner_or_admin(doc, actor)
            if doc.kind == FEEDBACK and doc.status == CLOSED:
                raise ReportClosed("This feedback is closed; no further replies are accepted")
            doc.conversation.append(ConversationEntry(
                author_name=actor.name,
                message=message,
                attachment=ref,
                timestamp=_now(),
            ))
            return doc

        return self.store.update_atomic(report_id, mutate)

    def delete_report(self, report_id: int, actor: Principal) -> None:
        doc = self.store.get(report_id)
        if doc is None:
            raise NotFound("Report not found")
        self._owner_or_admin(doc, actor)
        if not self.store.delete(report_id):
            raise NotFound("Report not found")
        # attachment blobs stay behind; nothing collects them
        logger.info("Deleted report %s by user %s", report_id, actor.user_id)

    def list_reports(self, actor: Principal, kind: Optional[str] = None, status: Optional[str] = None,
                     route: Optional[str] = None, descending: bool = True) -> List[ReportDoc]:
        kinds = None
        if kind:
            if kind == "LostFound":
                kinds = [LOST, FOUND]
            elif kind in KINDS:
                kinds = [kind]
            else:
                raise ValidationError(fields=["kind"])
        return self.store.query(
            kind=kinds,
            status=status,
            route=route,
            author_user_id=None if actor.is_admin else actor.user_id,
            descending=descending,
        )
