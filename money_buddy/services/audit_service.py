"""Audit trail writer."""

import json
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from money_buddy.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditService:

    def __init__(self, db: Session):
        self.db = db

    def record(
        self, event_type: str, entity_type: str, entity_id: int, **details
    ) -> AuditLog:
        """Append an audit event. Decimal and datetime values are stringified."""
        entry = AuditLog(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            details=json.dumps(details, default=str, sort_keys=True),
        )
        self.db.add(entry)
        self.db.flush()
        logger.debug("audit %s %s=%s %s", event_type, entity_type, entity_id, details)
        return entry

    def get_events(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        """Return all events for an entity, oldest first."""
        events = self.db.execute(
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.id)
        ).scalars().all()
        return list(events)
