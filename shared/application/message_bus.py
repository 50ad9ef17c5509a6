"""
Message Bus

Routes committed domain events to the handlers that react to them
(queueing notifications, for instance). Handlers are registered by each
app's ``AppConfig.ready()``.
"""

from typing import Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for domain events

    Multiple handlers per event (1:N).
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        """
        Register an event handler

        Registering the same handler twice is a no-op, so repeated
        ``ready()`` calls do not double-deliver.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler for {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Callable]:
        return list(self._event_handlers.get(event_type, []))

    def publish_events(self, events: List[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event type will be called.
        Errors in handlers are logged but don't stop other handlers:
        the originating transaction has already committed.
        """
        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.warning(f"No handlers registered for event {event_type.__name__}")
                continue

            logger.info(f"Publishing event: {event_type.__name__} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                    logger.debug(f"Event {event_type.__name__} handled by {handler.__name__}")
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} "
                        f"for event {event_type.__name__}: {e}",
                        exc_info=True
                    )


# Global message bus instance
message_bus = MessageBus()
