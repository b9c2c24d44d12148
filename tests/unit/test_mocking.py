"""
Unit tests for the mock registry and its teardown verification.
"""

from unittest.mock import MagicMock

import pytest

from flask_testbench import ExpectationNotMetError, Mockery
from tests.fixtures.cases import AppTestCase, build

pytestmark = pytest.mark.unit


class Mailer:
    def send(self, to, subject=None):
        return 'sent'


class TestMockery:

    def test_mock_patches_until_closed(self):
        mocked = Mockery.mock(Mailer, 'send', return_value='mocked')
        assert Mailer().send('a@example.com') == 'mocked'
        assert mocked.called is True

        Mockery.close()
        assert Mailer().send('a@example.com') == 'sent'

    def test_mock_by_dotted_path(self):
        from flask_testbench import events
        Mockery.mock('flask_testbench.events.model_event_name', return_value='patched')
        assert events.model_event_name('created', object()) == 'patched'
        Mockery.close()
        assert events.model_event_name('created', object()) == 'model.created: object'

    def test_is_active_tracks_registry(self):
        assert Mockery.is_active() is False
        Mockery.expect(MagicMock(), 'send')
        assert Mockery.is_active() is True
        with pytest.raises(ExpectationNotMetError):
            Mockery.close()
        assert Mockery.is_active() is False

    def test_met_expectations_close_quietly(self):
        service = MagicMock()
        Mockery.expect(service, 'send', times=2)
        service.send('a')
        service.send('b')
        Mockery.close()

    def test_unmet_expectation_reports_description(self):
        service = MagicMock()
        Mockery.expect(service, 'send', times=1, args=('a@example.com',))
        service.send('b@example.com')

        with pytest.raises(ExpectationNotMetError) as exc_info:
            Mockery.close()

        assert "send('a@example.com') exactly 1 time(s)" in str(exc_info.value)
        assert exc_info.value.missing == ["send('a@example.com') exactly 1 time(s)"]

    def test_expectation_matches_keyword_arguments(self):
        service = MagicMock()
        expectation = Mockery.expect(service, 'send', kwargs={'subject': 'Hi'})
        service.send('x', subject='Hello')
        assert expectation.is_met() is False
        service.send(subject='Hi')
        assert expectation.is_met() is True
        Mockery.close()

    def test_patches_stopped_even_when_expectations_fail(self):
        Mockery.mock(Mailer, 'send')
        Mockery.expect(MagicMock(), 'never_called')

        with pytest.raises(ExpectationNotMetError):
            Mockery.close()
        assert Mailer().send('a') == 'sent'


class TestMockHelpersOnTestCase:

    def test_teardown_closes_registry(self):
        case = build(AppTestCase)
        case.setUp()
        case.mock(Mailer, 'send', return_value='mocked')
        assert Mailer().send('a') == 'mocked'
        case.tearDown()

        assert Mockery.is_active() is False
        assert Mailer().send('a') == 'sent'

    def test_teardown_raises_for_unmet_expectation_after_cleanup(self):
        case = build(AppTestCase)
        case.setUp()
        app = case.app
        mailer = case.mock(Mailer, 'send')
        case.expect(Mailer, 'send', times=1)

        with pytest.raises(ExpectationNotMetError):
            case.tearDown()

        assert mailer.called is False
        assert app.flushed is True
        assert case.app is None
