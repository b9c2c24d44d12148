"""
Optional lifecycle capabilities a test class can declare.

A test class opts into database and request behaviour by listing capabilities,
either as a class attribute or with the ``uses`` decorator:

    class TestOrders(TestCase):
        capabilities = [Capability.DATABASE_TRANSACTIONS]

    @uses(Capability.REFRESH_DATABASE, Capability.WITHOUT_EVENTS)
    class TestCheckout(TestCase):
        ...

Declarations are inherited and merged along the MRO. Whatever the declaration
order, hooks always run in the fixed priority order of the enum: database state
first, then middleware, then events.
"""

from enum import Enum
from typing import Iterable, List, Tuple

from flask_testbench.exceptions import CapabilityError

_USES_MARKER = '__testbench_uses__'


class Capability(Enum):
    """Known capabilities as ``(priority, hook method name)``."""

    REFRESH_DATABASE = (10, 'refresh_database')
    DATABASE_MIGRATIONS = (20, 'run_database_migrations')
    DATABASE_TRANSACTIONS = (30, 'begin_database_transaction')
    WITHOUT_MIDDLEWARE = (40, 'disable_middleware_for_all_tests')
    WITHOUT_EVENTS = (50, 'disable_events_for_all_tests')

    @property
    def priority(self) -> int:
        return self.value[0]

    @property
    def hook(self) -> str:
        return self.value[1]

    def set_up(self, test_case) -> None:
        """Invoke this capability's hook on ``test_case``."""
        getattr(test_case, self.hook)()


def _validate(capabilities: Iterable) -> Tuple[Capability, ...]:
    declared = tuple(capabilities)
    for capability in declared:
        if not isinstance(capability, Capability):
            raise CapabilityError(
                f"{capability!r} is not a Capability",
                details={'declared': repr(capability)},
            )
    return declared


def uses(*capabilities: Capability):
    """Class decorator declaring capabilities for a test class."""
    declared = _validate(capabilities)

    def decorator(cls: type) -> type:
        existing = cls.__dict__.get(_USES_MARKER, ())
        setattr(cls, _USES_MARKER, tuple(existing) + declared)
        return cls

    return decorator


def resolve_capabilities(cls: type) -> List[Capability]:
    """
    Collect the capabilities declared by ``cls`` and its bases.

    Both the ``capabilities`` attribute and ``uses`` declarations are read from
    each class body along the MRO. The result is de-duplicated and sorted by
    priority.

    Raises:
        CapabilityError: If a declaration contains a non-capability
    """
    found = set()
    for klass in cls.__mro__:
        for attribute in ('capabilities', _USES_MARKER):
            found.update(_validate(klass.__dict__.get(attribute, ()) or ()))
    return sorted(found, key=lambda capability: capability.priority)
