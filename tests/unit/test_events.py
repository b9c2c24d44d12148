"""
Unit tests for the event dispatcher, the event fake, the ORM event bridge and
facades.
"""

import pytest

from flask_testbench import DB, EventDispatcher, EventFake, Events, Facade, ModelEvents
from flask_testbench.events import model_event_name
from tests.fixtures.app import User
from tests.fixtures.cases import DatabaseTestCase
from tests.fixtures.factories import UserFactory

pytestmark = pytest.mark.unit


class TestEventDispatcher:

    def test_dispatch_calls_listeners_in_order_and_collects_results(self):
        dispatcher = EventDispatcher()
        dispatcher.listen('order.placed', lambda payload: f'mail {payload}')
        dispatcher.listen('order.placed', lambda payload: f'audit {payload}')

        assert dispatcher.dispatch('order.placed', 42) == ['mail 42', 'audit 42']

    def test_dispatch_without_listeners_returns_empty(self):
        assert EventDispatcher().dispatch('nothing') == []

    def test_has_listeners_and_forget(self):
        dispatcher = EventDispatcher()
        dispatcher.listen('a', lambda payload: None)
        assert dispatcher.has_listeners('a') is True
        assert dispatcher.has_listeners('b') is False

        dispatcher.forget('a')
        assert dispatcher.has_listeners('a') is False

    def test_flush_removes_everything(self):
        dispatcher = EventDispatcher()
        dispatcher.listen('a', lambda payload: 'x')
        dispatcher.flush()
        assert dispatcher.dispatch('a') == []

    def test_listener_exceptions_propagate(self):
        dispatcher = EventDispatcher()

        def broken(payload):
            raise ValueError('listener failed')

        dispatcher.listen('a', broken)
        with pytest.raises(ValueError):
            dispatcher.dispatch('a')


class TestEventFake:

    def test_records_without_running_listeners(self):
        fake = EventFake()
        calls = []
        fake.listen('a', calls.append)

        assert fake.dispatch('a', 'payload') == []
        assert calls == []
        assert fake.fired == [('a', 'payload')]
        assert fake.was_fired('a') is True
        assert fake.was_fired('b') is False

    def test_filter_fired_keeps_requested_order(self):
        fake = EventFake()
        fake.dispatch('b')
        fake.dispatch('a')
        assert fake.filter_fired(['a', 'b', 'c']) == ['a', 'b']


class TestModelEvents:

    def test_event_name_uses_model_class(self):
        assert model_event_name('created', User(name='x', email='x@example.com')) == 'model.created: User'

    def test_reset_detaches_dispatcher(self):
        dispatcher = EventDispatcher()
        ModelEvents.bind(dispatcher)
        assert ModelEvents.dispatcher() is dispatcher
        ModelEvents.reset()
        assert ModelEvents.dispatcher() is None


class TestModelEventsOnApplication(DatabaseTestCase):

    def test_created_event_reaches_application_dispatcher(self):
        received = []
        self.app.events.listen('model.created: User', received.append)
        self.with_factories(UserFactory)

        user = self.factory(UserFactory, name='Ada')

        self.assertEqual(received, [user])

    def test_updated_and_deleted_events(self):
        received = []
        self.app.events.listen('model.updated: User', lambda user: received.append('updated'))
        self.app.events.listen('model.deleted: User', lambda user: received.append('deleted'))
        self.with_factories(UserFactory)
        user = self.factory(UserFactory)

        db = self.resolve('sqlalchemy')
        user.name = 'Renamed'
        db.session.commit()
        db.session.delete(user)
        db.session.commit()

        self.assertEqual(received, ['updated', 'deleted'])

    def test_model_events_go_to_fake_when_events_disabled(self):
        self.without_events()
        self.with_factories(UserFactory)
        self.factory(UserFactory)

        self.assertTrue(self.app.events.was_fired('model.created: User'))


class TestFacades:

    def test_facade_without_accessor_raises(self):
        class Nameless(Facade):
            pass

        with pytest.raises(RuntimeError):
            Nameless.get_facade_root()


class TestFacadesOnApplication(DatabaseTestCase):

    def test_facades_resolve_current_application_services(self):
        self.assertIs(Events.get_facade_root(), self.app.events)
        self.assertIs(DB.get_facade_root(), self.app['sqlalchemy'])
        self.assertIn('events', Facade.resolved_instances())

    def test_facade_forwards_attribute_access(self):
        self.app.events.listen('ping', lambda payload: 'pong')
        self.assertEqual(Events.dispatch('ping'), ['pong'])

    def test_instance_replaces_facade_root(self):
        Events.get_facade_root()
        replacement = EventDispatcher()
        self.instance('events', replacement)

        self.assertIs(Events.get_facade_root(), replacement)

    def test_swap_replaces_root_on_application(self):
        replacement = EventDispatcher()
        Events.swap(replacement)

        self.assertIs(self.app.events, replacement)
