"""
Unit of Work Pattern

Wraps one database transaction and guarantees that domain events
recorded inside it reach the message bus only after a successful commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import DatabaseError, transaction

from shared.domain.base import DomainEvent
from shared.domain.exceptions import TransactionError

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def add_event(self, event: DomainEvent):
        """Record an event to publish after commit"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            invoice = Invoice.objects.select_for_update().get(...)
            invoice.mark_paid()
            uow.add_event(InvoicePaid(...))
            # Transaction commits here
        # Events are published after commit

    A ``DatabaseError`` raised inside the block (or by the commit itself)
    rolls everything back and surfaces as ``TransactionError``. Domain
    errors raised inside the block roll back and propagate unchanged.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._transaction = None

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            try:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
            except DatabaseError as exc:
                logger.error(f"Transaction commit failed: {exc}", exc_info=True)
                raise TransactionError(message=str(exc)) from exc

        if exc_type is not None and issubclass(exc_type, DatabaseError):
            logger.error(f"Transaction aborted by storage error: {exc_val}")
            raise TransactionError(message=str(exc_val)) from exc_val
        return False

    def commit(self):
        """
        Schedule event publishing

        Events are published using Django's transaction.on_commit()
        so they are only sent after the database commit succeeds.
        """
        logger.debug(f"Committing transaction with {len(self._events)} events")

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Discard recorded events; atomic() undoes the writes"""
        logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def add_event(self, event: DomainEvent):
        self._events.append(event)
        logger.debug(f"Recorded event {event.__class__.__name__} (ID: {event.event_id})")

    @property
    def events(self) -> List[DomainEvent]:
        return self._events.copy()

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to message bus

        Called after successful transaction commit.
        """
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        message_bus.publish_events(events)
