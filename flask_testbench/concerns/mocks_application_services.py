"""
Event faking, event expectations and mock helpers.

``without_events()`` swaps the application's dispatcher for an ``EventFake``
that records events without running listeners. ``expects_events`` and
``doesnt_expect_events`` build on it and verify what was fired just before the
application is destroyed.
"""

from typing import Any, Iterable, List, Optional, Tuple

from flask_testbench.events import EventFake, ModelEvents
from flask_testbench.exceptions import ExpectationNotMetError
from flask_testbench.mocking import Expectation, Mockery


def _flatten(events: Tuple[Any, ...]) -> List[str]:
    names: List[str] = []
    for event in events:
        if isinstance(event, (list, tuple, set)):
            names.extend(event)
        else:
            names.append(event)
    return names


class MocksApplicationServices:

    def without_events(self) -> 'MocksApplicationServices':
        """Record events instead of dispatching them."""
        if not isinstance(self.app.events, EventFake):
            fake = self.instance('events', EventFake())
            ModelEvents.bind(fake)
        return self

    def disable_events_for_all_tests(self) -> None:
        self.without_events()

    def expects_events(self, *events: Any) -> 'MocksApplicationServices':
        """Fail the test unless every given event is fired."""
        expected = _flatten(events)
        self.without_events()

        def check() -> None:
            fired = self.get_fired_events(expected)
            missing = [name for name in expected if name not in fired]
            if missing:
                raise ExpectationNotMetError(
                    'These expected events were not fired: [' + ', '.join(missing) + ']',
                    missing=missing,
                )

        self.before_application_destroyed(check)
        return self

    def doesnt_expect_events(self, *events: Any) -> 'MocksApplicationServices':
        """Fail the test if any given event is fired."""
        unexpected = _flatten(events)
        self.without_events()

        def check() -> None:
            fired = self.get_fired_events(unexpected)
            if fired:
                raise ExpectationNotMetError(
                    'These unexpected events were fired: [' + ', '.join(fired) + ']',
                    missing=fired,
                )

        self.before_application_destroyed(check)
        return self

    def get_fired_events(self, events: Iterable[str]) -> List[str]:
        dispatcher = self.app.events
        if not isinstance(dispatcher, EventFake):
            return []
        return dispatcher.filter_fired(events)

    def mock(self, target: Any, attribute: Optional[str] = None, **kwargs) -> Any:
        """Patch ``target`` for this test; the patch is undone at teardown."""
        return Mockery.mock(target, attribute, **kwargs)

    def expect(self, mock_object: Any, method: str, times: Optional[int] = None,
               args: Optional[Tuple[Any, ...]] = None, kwargs: Optional[dict] = None) -> Expectation:
        """Declare a call expectation verified at teardown."""
        return Mockery.expect(mock_object, method, times=times, args=args, kwargs=kwargs)
