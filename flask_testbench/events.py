"""
Event bus for applications under test and the ORM event bridge.

Each application booted by the harness gets its own ``EventDispatcher`` stored
under ``app.extensions['events']``. Dispatchers are built on blinker signals,
one named signal per event, so listeners connected by the application and by
the test live side by side.

``ModelEvents`` is the process-wide registry that decides which dispatcher
receives ORM lifecycle events. SQLAlchemy mapper events are global to the
process, so the registry is rebound to the fresh application's dispatcher at
the start of every test and the listeners themselves are installed only once.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from blinker import Signal
from sqlalchemy import event
from sqlalchemy.orm import Mapper

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class EventDispatcher:
    """
    Named-event dispatcher backed by blinker signals.

    Listeners receive the event payload as their only argument. The return
    values of all listeners are collected and returned from ``dispatch``.
    """

    def __init__(self) -> None:
        self._signals: Dict[str, Signal] = {}

    def _signal(self, event_name: str) -> Signal:
        if event_name not in self._signals:
            self._signals[event_name] = Signal(event_name)
        return self._signals[event_name]

    def listen(self, event_name: str, listener: Listener) -> None:
        """Register ``listener`` for ``event_name``."""
        def receiver(sender, payload=None):
            return listener(payload)

        # keep the user callable reachable for identity checks
        receiver.listener = listener
        self._signal(event_name).connect(receiver, weak=False)

    def dispatch(self, event_name: str, payload: Any = None) -> List[Any]:
        """
        Fire an event.

        Args:
            event_name: Name of the event
            payload: Object handed to every listener

        Returns:
            List of listener return values, in connection order
        """
        signal = self._signals.get(event_name)
        if signal is None:
            return []
        return [result for _, result in signal.send(self, payload=payload)]

    def has_listeners(self, event_name: str) -> bool:
        signal = self._signals.get(event_name)
        return bool(signal is not None and signal.receivers)

    def forget(self, event_name: str) -> None:
        """Remove every listener for ``event_name``."""
        self._signals.pop(event_name, None)

    def flush(self) -> None:
        self._signals.clear()


class EventFake(EventDispatcher):
    """
    Dispatcher that records events instead of running listeners.

    Installed by ``without_events()``; listeners registered on the fake are
    kept but never called.
    """

    def __init__(self) -> None:
        super().__init__()
        self.fired: List[Tuple[str, Any]] = []

    def dispatch(self, event_name: str, payload: Any = None) -> List[Any]:
        self.fired.append((event_name, payload))
        return []

    def fired_events(self) -> List[str]:
        return [name for name, _ in self.fired]

    def was_fired(self, event_name: str) -> bool:
        return event_name in self.fired_events()

    def filter_fired(self, event_names: Iterable[str]) -> List[str]:
        """Return the subset of ``event_names`` that were fired, in given order."""
        fired = set(self.fired_events())
        return [name for name in event_names if name in fired]


def model_event_name(action: str, target: Any) -> str:
    """Build the event name used for ORM lifecycle events, e.g. ``model.created: User``."""
    return f"model.{action}: {type(target).__name__}"


class ModelEvents:
    """
    Process-wide binding between SQLAlchemy mapper events and a dispatcher.

    ``bind`` installs the mapper listeners on first use and points them at the
    given dispatcher. ``reset`` detaches the dispatcher; listeners stay
    installed but become no-ops.
    """

    _dispatcher: Optional[EventDispatcher] = None
    _installed = False

    _ACTIONS = (
        ('after_insert', 'created'),
        ('after_update', 'updated'),
        ('after_delete', 'deleted'),
    )

    @classmethod
    def bind(cls, dispatcher: EventDispatcher) -> None:
        cls._install()
        cls._dispatcher = dispatcher

    @classmethod
    def reset(cls) -> None:
        cls._dispatcher = None

    @classmethod
    def dispatcher(cls) -> Optional[EventDispatcher]:
        return cls._dispatcher

    @classmethod
    def _install(cls) -> None:
        if cls._installed:
            return
        for sqlalchemy_event, action in cls._ACTIONS:
            event.listen(Mapper, sqlalchemy_event, cls._forwarder(action))
        cls._installed = True
        logger.debug("Installed ORM event forwarders")

    @classmethod
    def _forwarder(cls, action: str):
        def forward(mapper, connection, target):
            dispatcher = cls._dispatcher
            if dispatcher is not None:
                dispatcher.dispatch(model_event_name(action, target), target)
        return forward
