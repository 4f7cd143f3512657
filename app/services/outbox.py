"""
Outbox Dispatcher
Processes side effects that were written as OutboxMessage rows in the same
transaction as the aggregate. Runs after commit: a failing handler never
undoes the committed aggregate, it only leaves the message for a retry.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.models.outbox import OutboxMessage, OutboxStatus

logger = logging.getLogger(__name__)


Handler = Callable[[Session, Dict[str, Any]], None]


class OutboxDispatcher:
    """
    Routes messages to handlers by topic.

    A handler runs in the same transaction that marks its message DONE.
    On failure that transaction is rolled back and the attempt is recorded
    separately; after max_attempts the message is parked as FAILED.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        handlers: Optional[Dict[str, Handler]] = None,
        max_attempts: int = settings.OUTBOX_MAX_ATTEMPTS,
        batch_size: int = settings.OUTBOX_BATCH_SIZE,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session_factory = session_factory
        self.handlers: Dict[str, Handler] = dict(handlers or {})
        self.max_attempts = max_attempts
        self.batch_size = batch_size
        self.clock = clock

    def register(self, topic: str, handler: Handler) -> None:
        self.handlers[topic] = handler

    @staticmethod
    def enqueue(session: Session, topic: str, payload: Dict[str, Any]) -> OutboxMessage:
        """Add a message to the caller's unit of work; flushed so its id is known"""
        message = OutboxMessage(topic=topic, payload=payload, status=OutboxStatus.PENDING)
        session.add(message)
        session.flush()
        return message

    def dispatch(self, message_ids: Iterable[UUID]) -> int:
        """Process specific messages right after their transaction committed"""
        return sum(1 for message_id in message_ids if self._process(message_id))

    def dispatch_pending(self, limit: Optional[int] = None) -> int:
        """
        Retry runner: process PENDING messages whose backoff has elapsed.

        Returns:
            Number of messages processed successfully
        """
        session = self.session_factory()
        try:
            ids = [
                row.id
                for row in session.query(OutboxMessage.id)
                .filter(
                    OutboxMessage.status == OutboxStatus.PENDING,
                    OutboxMessage.available_at <= self.clock(),
                )
                .order_by(OutboxMessage.created_at)
                .limit(limit or self.batch_size)
                .all()
            ]
        finally:
            session.close()

        if ids:
            logger.info(f"Dispatching {len(ids)} pending outbox message(s)")
        return self.dispatch(ids)

    def _process(self, message_id: UUID) -> bool:
        session = self.session_factory()
        try:
            message = (
                session.query(OutboxMessage)
                .filter(
                    OutboxMessage.id == message_id,
                    OutboxMessage.status == OutboxStatus.PENDING,
                )
                .with_for_update(skip_locked=True)
                .first()
            )
            if message is None:
                # Already handled, or claimed by another dispatcher
                return False

            handler = self.handlers.get(message.topic)
            if handler is None:
                raise LookupError(f"No handler registered for topic {message.topic}")

            handler(session, message.payload)

            message.attempts += 1
            message.status = OutboxStatus.DONE
            message.processed_at = self.clock()
            message.last_error = None
            session.commit()

            logger.info(f"Outbox message {message_id} ({message.topic}) done")
            return True

        except Exception as e:
            session.rollback()
            logger.exception(f"Outbox message {message_id} failed: {e}")
            self._record_failure(message_id, e)
            return False

        finally:
            session.close()

    def _record_failure(self, message_id: UUID, error: Exception) -> None:
        session = self.session_factory()
        try:
            message = session.get(OutboxMessage, message_id)
            if message is None:
                return

            message.attempts += 1
            message.last_error = f"{type(error).__name__}: {error}"[:2000]

            if message.attempts >= self.max_attempts:
                message.status = OutboxStatus.FAILED
                logger.error(f"Outbox message {message_id} failed {message.attempts} times, giving up")
            else:
                message.available_at = self.clock() + timedelta(seconds=2 ** message.attempts)

            session.commit()

        except SQLAlchemyError as e:
            # Message stays PENDING with its old attempt count
            session.rollback()
            logger.error(f"Could not record outbox failure for {message_id}: {e}")

        finally:
            session.close()
