"""
Lifecycle orchestrator for application tests.

``TestCase`` owns one Flask application per test. ``setUp`` builds it, runs the
capability hooks the test class declares and drains the after-created
callbacks; ``tearDown`` drains the before-destroyed callbacks, flushes the
application and verifies mock expectations.

Example:
    from flask_testbench import Capability, TestCase

    class TestOrders(TestCase):
        application_factory = create_app
        capabilities = [Capability.REFRESH_DATABASE]

        def test_list_orders(self):
            self.get('/orders').see_status_code(200)

Callbacks registered before setup completes are deferred until the
application exists. Callbacks registered from the test body run immediately
(after-created) or at teardown (before-destroyed).
"""

import unittest
from enum import Enum
from typing import Any, Callable, List, Optional

from flask_testbench.application import Application
from flask_testbench.capabilities import Capability, resolve_capabilities
from flask_testbench.concerns import (
    CreatesApplication,
    ImpersonatesUsers,
    InteractsWithConsole,
    InteractsWithContainer,
    InteractsWithDatabase,
    MakesHttpRequests,
    ManagesDatabase,
    MocksApplicationServices,
    WithFactories,
)
from flask_testbench.config import mark_testing_environment
from flask_testbench.contracts import TestCaseContract
from flask_testbench.events import ModelEvents
from flask_testbench.facades import Facade
from flask_testbench.logging import get_logger
from flask_testbench.mocking import Mockery

Callback = Callable[[], Any]

log = get_logger(__name__)


class LifecycleState(Enum):
    UNINITIALIZED = 'uninitialized'
    SETTING_UP = 'setting_up'
    READY = 'ready'
    TEARING_DOWN = 'tearing_down'


class TestCase(
    CreatesApplication,
    InteractsWithContainer,
    MakesHttpRequests,
    ImpersonatesUsers,
    InteractsWithConsole,
    InteractsWithDatabase,
    ManagesDatabase,
    MocksApplicationServices,
    WithFactories,
    unittest.TestCase,
    TestCaseContract,
):
    """Base class for tests that run against a Flask application."""

    capabilities: List[Capability] = []

    def __init__(self, methodName: str = 'runTest') -> None:
        super().__init__(methodName)
        self.app: Optional[Application] = None
        self._after_application_created_callbacks: List[Callback] = []
        self._before_application_destroyed_callbacks: List[Callback] = []
        self.set_up_has_run = False
        self.server_variables = {}
        self.lifecycle_state = LifecycleState.UNINITIALIZED
        self.resolved_capabilities: List[Capability] = []

    def setUp(self) -> None:
        """
        Boot the application for the current test.

        If anything fails here unittest will not call ``tearDown``, so the
        partially built state is torn down before the error propagates.
        """
        self.lifecycle_state = LifecycleState.SETTING_UP
        try:
            if self.app is None:
                self.refresh_application()

            self.set_up_capabilities()

            # callbacks may register further callbacks while draining
            index = 0
            while index < len(self._after_application_created_callbacks):
                self._after_application_created_callbacks[index]()
                index += 1

            Facade.clear_resolved_instances()
            ModelEvents.bind(self.app.events)
        except Exception:
            try:
                self.tearDown()
            except Exception as cleanup_error:
                log.warning("setup.cleanup_failed", test=self.id(), error=repr(cleanup_error))
            raise

        self.set_up_has_run = True
        self.lifecycle_state = LifecycleState.READY
        log.debug("setup.complete", test=self.id(),
                  capabilities=[c.name for c in self.resolved_capabilities])

    def refresh_application(self) -> None:
        """Mark the process as testing and build a fresh application."""
        mark_testing_environment()
        self.app = self.create_application()

    def set_up_capabilities(self) -> List[Capability]:
        """Run the hook of every declared capability in priority order."""
        self.resolved_capabilities = resolve_capabilities(type(self))
        for capability in self.resolved_capabilities:
            log.debug("capability.set_up", test=self.id(), capability=capability.name)
            capability.set_up(self)
        return self.resolved_capabilities

    def tearDown(self) -> None:
        """
        Destroy the application and reset process-wide state.

        Every before-destroyed callback runs even when an earlier one fails;
        the application is flushed regardless, and the first error is raised
        once cleanup is done.
        """
        self.lifecycle_state = LifecycleState.TEARING_DOWN
        first_error: Optional[BaseException] = None
        try:
            if self.app is not None:
                for callback in self._before_application_destroyed_callbacks:
                    try:
                        callback()
                    except Exception as exc:
                        if first_error is None:
                            first_error = exc
                        else:
                            log.warning("teardown.callback_failed", test=self.id(), error=repr(exc))

                try:
                    self.app.flush()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
                    else:
                        log.warning("teardown.flush_failed", test=self.id(), error=repr(exc))
                finally:
                    self.app = None
                    ModelEvents.reset()

            self.set_up_has_run = False
            self.server_variables = {}

            if Mockery.is_active():
                try:
                    Mockery.close()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
                    else:
                        log.warning("teardown.mock_verification_failed", test=self.id(), error=repr(exc))

            if first_error is not None:
                raise first_error
        finally:
            self._after_application_created_callbacks = []
            self._before_application_destroyed_callbacks = []
            self.lifecycle_state = LifecycleState.UNINITIALIZED
            log.debug("teardown.complete", test=self.id())

    def after_application_created(self, callback: Callback) -> None:
        """Run ``callback`` once the application exists."""
        self._after_application_created_callbacks.append(callback)
        if self.lifecycle_state is LifecycleState.READY:
            callback()

    def before_application_destroyed(self, callback: Callback) -> None:
        """Run ``callback`` before the application is flushed."""
        self._before_application_destroyed_callbacks.append(callback)
