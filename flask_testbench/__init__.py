"""
flask-testbench: application test harness for Flask.

Subclass ``TestCase``, point ``application_factory`` at your app factory and
declare the capabilities the tests need.
"""

from flask_testbench.application import Application
from flask_testbench.capabilities import Capability, resolve_capabilities, uses
from flask_testbench.config import TestingConfig
from flask_testbench.events import EventDispatcher, EventFake, ModelEvents
from flask_testbench.exceptions import (
    ApplicationCreationError,
    CapabilityError,
    DatabaseSetupError,
    ExpectationNotMetError,
    ResponseError,
    TestbenchError,
)
from flask_testbench.facades import DB, Events, Facade
from flask_testbench.mocking import Mockery
from flask_testbench.testcase import LifecycleState, TestCase

__version__ = '0.1.0'

__all__ = [
    'Application',
    'ApplicationCreationError',
    'Capability',
    'CapabilityError',
    'DB',
    'DatabaseSetupError',
    'EventDispatcher',
    'EventFake',
    'Events',
    'ExpectationNotMetError',
    'Facade',
    'LifecycleState',
    'Mockery',
    'ModelEvents',
    'ResponseError',
    'TestCase',
    'TestbenchError',
    'TestingConfig',
    'resolve_capabilities',
    'uses',
]
