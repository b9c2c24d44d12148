"""
Static accessors for services registered on the current application.

A facade resolves a named entry of ``current_app.extensions`` on first access
and caches it process-wide, so code can write ``Events.dispatch('x')`` without
passing the dispatcher around. The cache outlives any single application,
which is why the harness calls ``Facade.clear_resolved_instances()`` at the
start of every test.
"""

from typing import Any, Dict, Optional

from flask import current_app


class FacadeMeta(type):
    """Forward unknown class attribute lookups to the facade root."""

    def __getattr__(cls, name: str) -> Any:
        if name.startswith('__'):
            raise AttributeError(name)
        return getattr(cls.get_facade_root(), name)


class Facade(metaclass=FacadeMeta):
    """
    Base class for static service accessors.

    Subclasses set ``accessor`` to the ``app.extensions`` key they proxy.
    """

    accessor: Optional[str] = None

    # shared by every subclass
    _resolved_instances: Dict[str, Any] = {}

    @classmethod
    def get_facade_accessor(cls) -> str:
        if not cls.accessor:
            raise RuntimeError(f"{cls.__name__} does not define an accessor")
        return cls.accessor

    @classmethod
    def get_facade_root(cls) -> Any:
        return cls.resolve_facade_instance(cls.get_facade_accessor())

    @classmethod
    def resolve_facade_instance(cls, name: str) -> Any:
        if name in Facade._resolved_instances:
            return Facade._resolved_instances[name]

        instance = current_app.extensions[name]
        Facade._resolved_instances[name] = instance
        return instance

    @classmethod
    def swap(cls, instance: Any) -> None:
        """Replace the facade root, both in the cache and on the current app."""
        name = cls.get_facade_accessor()
        Facade._resolved_instances[name] = instance
        current_app.extensions[name] = instance

    @classmethod
    def clear_resolved_instance(cls, name: str) -> None:
        Facade._resolved_instances.pop(name, None)

    @classmethod
    def clear_resolved_instances(cls) -> None:
        Facade._resolved_instances.clear()

    @classmethod
    def resolved_instances(cls) -> Dict[str, Any]:
        return dict(Facade._resolved_instances)


class Events(Facade):
    accessor = 'events'


class DB(Facade):
    accessor = 'sqlalchemy'
