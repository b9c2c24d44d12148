"""
Application construction for test cases.

A test case points at its application factory with the ``application_factory``
class attribute; without one a bare Flask app is created, which is enough for
testing extensions and blueprints in isolation:

    class TestApi(TestCase):
        application_factory = create_app
        factory_options = {'config_name': 'testing'}

        def get_package_extensions(self, app):
            return [cache]

        def get_environment_set_up(self, app):
            app.config['FEATURE_FLAG'] = True

Construction order: factory, testing configuration, ``config_overrides``,
``get_environment_set_up``, package extensions, package blueprints. Extensions
returned by ``get_package_extensions`` therefore see the final configuration.
Extensions the factory initialises itself (Flask-SQLAlchemy usually) read their
configuration inside the factory, so database settings belong in
``factory_options`` or in the factory's own testing branch.
"""

import os
from typing import Any, Callable, Dict, List, Optional

from flask import Blueprint, Flask

from flask_testbench.application import Application
from flask_testbench.config import TestingConfig, load_environment
from flask_testbench.exceptions import ApplicationCreationError
from flask_testbench.logging import get_logger


class CreatesApplication:
    """Build the Flask application a test runs against."""

    application_factory: Optional[Callable[..., Flask]] = None
    factory_options: Dict[str, Any] = {}
    config_overrides: Dict[str, Any] = {}
    testing_config = TestingConfig
    base_path: Optional[str] = None

    def get_application_factory(self) -> Callable[..., Flask]:
        # read through the class so a plain function is not bound as a method
        factory = getattr(type(self), 'application_factory', None)
        return factory or self.create_default_application

    def get_application_factory_options(self) -> Dict[str, Any]:
        return dict(self.factory_options)

    def create_default_application(self, **options) -> Flask:
        return Flask('flask_testbench', root_path=self.get_base_path(), **options)

    def get_base_path(self) -> str:
        return self.base_path or os.getcwd()

    def get_package_extensions(self, app: Flask) -> List[Any]:
        """Extensions (objects with ``init_app``) to register on the app."""
        return []

    def get_package_blueprints(self, app: Flask) -> List[Blueprint]:
        return []

    def get_environment_set_up(self, app: Flask) -> None:
        """Define environment setup; override to adjust ``app`` before use."""

    def create_application(self) -> Application:
        """
        Create the application for the current test.

        Returns:
            Application: booted application with its context pushed

        Raises:
            ApplicationCreationError: If the factory returns something other
                than a Flask application
        """
        load_environment(self.get_base_path())

        factory = self.get_application_factory()
        flask_app = factory(**self.get_application_factory_options())

        if not isinstance(flask_app, Flask):
            raise ApplicationCreationError(
                f"Application factory returned {type(flask_app).__name__}, expected Flask",
                factory=factory,
            )

        self.resolve_application_configuration(flask_app)
        self.get_environment_set_up(flask_app)
        self.resolve_package_extensions(flask_app)
        self.resolve_package_blueprints(flask_app)

        get_logger(__name__).debug(
            "application.created", app=flask_app.name, test=type(self).__name__
        )
        return Application(flask_app)

    def resolve_application_configuration(self, app: Flask) -> None:
        """
        Apply the testing configuration.

        Testing values only fill keys the factory left at Flask's defaults, so
        a factory's own testing configuration wins. ``TESTING`` is always on and
        ``config_overrides`` always applies.
        """
        defaults = Flask.default_config
        for key, value in self.testing_config.to_dict().items():
            if key not in app.config or app.config[key] == defaults.get(key):
                app.config[key] = value

        app.config['TESTING'] = True
        app.config.update(self.config_overrides)

    def resolve_package_extensions(self, app: Flask) -> None:
        for extension in self.get_package_extensions(app):
            extension.init_app(app)

    def resolve_package_blueprints(self, app: Flask) -> None:
        for blueprint in self.get_package_blueprints(app):
            app.register_blueprint(blueprint)
