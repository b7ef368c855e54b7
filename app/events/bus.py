from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.events.outbox import OutboxEvent

logger = logging.getLogger(__name__)


def publish(db: Session, topic: str, payload: dict) -> OutboxEvent:
    """Publish an event by adding it to the transactional outbox.

    The row is only flushed; the caller's commit makes it durable together
    with the change that produced it.
    """
    evt = OutboxEvent(
        topic=topic,
        payload=payload or {},
        delivered=False,
        attempt_count=0,
    )
    db.add(evt)
    db.flush()
    logger.debug("outbox event %s queued (%s)", topic, evt.id)
    return evt
