"""
Integration tests for event faking, event expectations and mock helpers.
"""

from unittest.mock import MagicMock

import pytest

from flask_testbench import (
    Capability,
    EventFake,
    ExpectationNotMetError,
    ModelEvents,
    uses,
)
from tests.fixtures.cases import AppTestCase, DatabaseTestCase, build


class TestWithoutEvents(DatabaseTestCase):

    def test_listeners_are_not_executed(self):
        calls = []
        self.app.events.listen('user.registered', calls.append)
        self.without_events()

        self.json('POST', '/users', {'name': 'Ada', 'email': 'ada@example.com'}).see_status_code(201)

        self.assertEqual(calls, [])
        self.assertEqual(self.get_fired_events(['user.registered', 'user.deleted']), ['user.registered'])

    def test_model_events_rebound_to_fake(self):
        self.without_events()

        self.assertIsInstance(self.app.events, EventFake)
        self.assertIs(ModelEvents.dispatcher(), self.app.events)

    def test_without_events_is_idempotent(self):
        self.without_events()
        fake = self.app.events
        self.without_events()

        self.assertIs(self.app.events, fake)

    def test_fired_events_empty_when_events_enabled(self):
        self.assertEqual(self.get_fired_events(['user.registered']), [])


@uses(Capability.WITHOUT_EVENTS)
class TestEventsDisabledForClass(DatabaseTestCase):

    def test_fake_installed_before_test_runs(self):
        self.assertIsInstance(self.app.events, EventFake)
        self.assertIs(ModelEvents.dispatcher(), self.app.events)


class TestEventExpectations(DatabaseTestCase):

    def test_expected_event_fired(self):
        self.expects_events('user.registered', 'model.created: User')

        self.json('POST', '/users', {'name': 'Ada', 'email': 'ada@example.com'})

    def test_unexpected_event_not_fired(self):
        self.doesnt_expect_events(['user.deleted'])

        self.json('POST', '/users', {'name': 'Ada', 'email': 'ada@example.com'})


class TestEventExpectationFailures:

    def test_missing_expected_event_fails_teardown(self):
        case = build(DatabaseTestCase)
        case.setUp()
        app = case.app
        case.expects_events('user.registered', 'user.verified')
        case.json('POST', '/users', {'name': 'Ada', 'email': 'ada@example.com'})

        with pytest.raises(ExpectationNotMetError) as exc_info:
            case.tearDown()

        assert str(exc_info.value) == 'These expected events were not fired: [user.verified]'
        assert exc_info.value.missing == ['user.verified']
        assert app.flushed is True
        assert case.app is None

    def test_unexpected_event_fails_teardown(self):
        case = build(DatabaseTestCase)
        case.setUp()
        case.doesnt_expect_events('user.registered')
        case.json('POST', '/users', {'name': 'Ada', 'email': 'ada@example.com'})

        with pytest.raises(ExpectationNotMetError, match=r'These unexpected events were fired: \[user.registered\]'):
            case.tearDown()


class Notifier:
    def notify(self, message):
        return 'delivered'


class TestMockHelpers(AppTestCase):

    def test_mock_replaces_target_for_the_test(self):
        mocked = self.mock(Notifier, 'notify', return_value='queued')

        self.assertEqual(Notifier().notify('hi'), 'queued')
        mocked.assert_called_once_with('hi')

    def test_expectation_met_within_test(self):
        service = MagicMock()
        self.expect(service, 'charge', times=1, args=(100,))

        service.charge(100)
