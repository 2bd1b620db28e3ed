"""
Event Repository - append-only event log
"""
import json
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shopsync.models import Event


class EventRepository:
    """Writes Event rows; events are never updated or deleted here"""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        tenant_id: int,
        event_type: str,
        customer_id: Optional[int] = None,
        order_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Event:
        event = Event(
            tenant_id=tenant_id,
            event_type=event_type,
            customer_id=customer_id,
            order_id=order_id,
            event_metadata=json.dumps(metadata, default=str) if metadata is not None else None,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def count(self, tenant_id: int) -> int:
        return self.session.execute(
            select(func.count()).select_from(Event).where(Event.tenant_id == tenant_id)
        ).scalar_one()
