"""
Message Bus

Routes domain events to the handlers subscribed to them. Contexts
register handlers at startup (see ``AppConfig.ready``); the unit of work
publishes events here after a transaction commits.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    In-process event bus

    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """
        Register an event handler

        Registering the same handler twice for one event type is a no-op,
        so ``ready()`` running more than once does not duplicate side effects.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler {handler.__name__} for {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        return list(self._event_handlers.get(event_type, []))

    def publish_events(self, events: Iterable[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event type are called.
        Errors in handlers are logged but don't stop other handlers.
        """
        for event in events:
            handlers = self.handlers_for(type(event))

            if not handlers:
                logger.debug(f"No handlers registered for event {event.name}")
                continue

            logger.info(f"Publishing event: {event.name} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} "
                        f"for event {event.name}: {e}",
                        exc_info=True
                    )


# Global message bus instance
message_bus = MessageBus()
