"""Mixins composed into ``flask_testbench.TestCase``."""

from flask_testbench.concerns.creates_application import CreatesApplication
from flask_testbench.concerns.interacts_with_authentication import (
    ImpersonatesUsers,
    InteractsWithAuthentication,
)
from flask_testbench.concerns.interacts_with_console import InteractsWithConsole
from flask_testbench.concerns.interacts_with_container import InteractsWithContainer
from flask_testbench.concerns.interacts_with_database import InteractsWithDatabase
from flask_testbench.concerns.interacts_with_session import InteractsWithSession
from flask_testbench.concerns.makes_http_requests import MakesHttpRequests
from flask_testbench.concerns.manages_database import ManagesDatabase
from flask_testbench.concerns.mocks_application_services import MocksApplicationServices
from flask_testbench.concerns.with_factories import WithFactories

__all__ = [
    'CreatesApplication',
    'ImpersonatesUsers',
    'InteractsWithAuthentication',
    'InteractsWithConsole',
    'InteractsWithContainer',
    'InteractsWithDatabase',
    'InteractsWithSession',
    'MakesHttpRequests',
    'ManagesDatabase',
    'MocksApplicationServices',
    'WithFactories',
]
