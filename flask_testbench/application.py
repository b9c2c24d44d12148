"""
Application instance owned by a single test.

``Application`` wraps the Flask app produced by the application factory and
holds everything that has to be released when the test ends: the pushed
application context, the test client and its cookie jar, SQLAlchemy sessions
and engines. Unknown attributes fall through to the Flask app, so tests can
keep writing ``self.app.config`` or ``self.app.url_map``.
"""

from typing import Any, Dict, List, Optional

from flask import Flask
from flask.testing import FlaskClient

from flask_testbench.events import EventDispatcher
from flask_testbench.logging import get_logger


def bootstrap(flask_app: Flask) -> Flask:
    """Install harness services on a freshly created Flask app."""
    existing = flask_app.extensions.get('events')
    if not isinstance(existing, EventDispatcher):
        if existing is not None:
            get_logger(__name__).warning(
                "application.events_replaced", app=flask_app.name, replaced=type(existing).__name__)
        flask_app.extensions['events'] = EventDispatcher()
    return flask_app


class Application:
    """
    Booted Flask application for the duration of one test.

    Args:
        flask_app: The application returned by the factory
    """

    def __init__(self, flask_app: Flask) -> None:
        self.flask_app = bootstrap(flask_app)
        self._context = flask_app.app_context()
        self._context.push()
        self.client: Optional[FlaskClient] = flask_app.test_client()
        self.flushed = False
        self._middleware_stash: Optional[Dict[str, Any]] = None
        self._log = get_logger(__name__).bind(app=flask_app.name)
        self._log.debug("application.booted")

    def __getattr__(self, name: str) -> Any:
        # only reached for attributes Application itself does not define
        flask_app = self.__dict__.get('flask_app')
        if flask_app is None:
            raise AttributeError(name)
        return getattr(flask_app, name)

    def __getitem__(self, name: str) -> Any:
        return self.flask_app.extensions[name]

    def __contains__(self, name: str) -> bool:
        return name in self.flask_app.extensions

    @property
    def events(self) -> EventDispatcher:
        """The event bus of this application."""
        return self.flask_app.extensions['events']

    def instance(self, name: str, obj: Any) -> Any:
        """Register ``obj`` under ``name`` in the extension registry."""
        self.flask_app.extensions[name] = obj
        return obj

    # -- middleware -----------------------------------------------------

    @property
    def middleware_disabled(self) -> bool:
        return self._middleware_stash is not None

    def without_middleware(self, names: Optional[List[str]] = None) -> None:
        """
        Disable request middleware.

        With no ``names`` every ``before_request``/``after_request`` function
        and any WSGI middleware wrapped around ``app.wsgi_app`` is removed.
        With ``names`` only hook functions whose ``__name__`` matches are
        removed; WSGI middleware stays in place.
        """
        app = self.flask_app
        if self._middleware_stash is None:
            self._middleware_stash = {
                'before_request_funcs': {k: list(v) for k, v in app.before_request_funcs.items()},
                'after_request_funcs': {k: list(v) for k, v in app.after_request_funcs.items()},
                'wsgi_app': app.__dict__.get('wsgi_app'),
            }

        if names:
            wanted = set(names)
            for registry in (app.before_request_funcs, app.after_request_funcs):
                for key, funcs in registry.items():
                    registry[key] = [f for f in funcs if getattr(f, '__name__', None) not in wanted]
            return

        app.before_request_funcs.clear()
        app.after_request_funcs.clear()
        # instance-level wsgi_app means something wrapped the app
        app.__dict__.pop('wsgi_app', None)
        self._log.debug("application.middleware_disabled")

    def with_middleware(self) -> None:
        """Restore middleware removed by ``without_middleware``."""
        if self._middleware_stash is None:
            return
        app = self.flask_app
        stash = self._middleware_stash
        app.before_request_funcs.clear()
        app.before_request_funcs.update(stash['before_request_funcs'])
        app.after_request_funcs.clear()
        app.after_request_funcs.update(stash['after_request_funcs'])
        if stash['wsgi_app'] is not None:
            app.wsgi_app = stash['wsgi_app']
        self._middleware_stash = None

    # -- teardown -------------------------------------------------------

    def flush(self) -> None:
        """
        Release every resource held by the application.

        Removes SQLAlchemy sessions, disposes engines, drops event listeners,
        pops the application context and clears the extension registry. Safe
        to call more than once.
        """
        if self.flushed:
            return

        app = self.flask_app
        try:
            db = app.extensions.get('sqlalchemy')
            if db is not None:
                db.session.remove()
                for engine in db.engines.values():
                    dispose = getattr(engine, 'dispose', None)
                    if dispose is not None:
                        dispose()

            events = app.extensions.get('events')
            if isinstance(events, EventDispatcher):
                events.flush()
        finally:
            self.client = None
            try:
                self._context.pop()
            finally:
                app.extensions.clear()
                self.flushed = True
                self._log.debug("application.flushed")

