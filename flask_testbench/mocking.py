"""
Mock registry with call expectations verified at teardown.

``unittest.mock`` checks nothing unless the test asserts explicitly. The
registry adds declared expectations on top of it: patches started through
``Mockery.mock`` are tracked, ``Mockery.expect`` records how a mocked method
must be called, and ``Mockery.close`` stops every patch and raises
``ExpectationNotMetError`` listing the expectations that did not hold.

The registry is process-wide; the test case closes it after every test so
nothing leaks into the next one.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from unittest import mock

from flask_testbench.exceptions import ExpectationNotMetError


@dataclass
class Expectation:
    """A declared call expectation on one attribute of a mock."""

    mock_object: Any
    method: str
    times: Optional[int] = None
    args: Optional[Tuple[Any, ...]] = None
    kwargs: Optional[dict] = None

    def describe(self) -> str:
        description = self.method
        if self.args is not None or self.kwargs is not None:
            args = ', '.join([repr(a) for a in self.args or ()] +
                             [f'{k}={v!r}' for k, v in (self.kwargs or {}).items()])
            description += f'({args})'
        if self.times is None:
            return f'{description} at least once'
        return f'{description} exactly {self.times} time(s)'

    def calls(self) -> List[Any]:
        recorded = getattr(self.mock_object, self.method).call_args_list
        if self.args is None and self.kwargs is None:
            return list(recorded)
        expected = mock.call(*(self.args or ()), **(self.kwargs or {}))
        return [c for c in recorded if c == expected]

    def is_met(self) -> bool:
        count = len(self.calls())
        if self.times is None:
            return count > 0
        return count == self.times


@dataclass
class _Registry:
    patchers: List[Any] = field(default_factory=list)
    expectations: List[Expectation] = field(default_factory=list)


class Mockery:
    """Process-wide mock registry."""

    _registry = _Registry()

    @classmethod
    def mock(cls, target: Any, attribute: Optional[str] = None, **kwargs) -> Any:
        """
        Patch a target with a ``MagicMock`` for the rest of the test.

        Args:
            target: Object to patch an attribute of, or a dotted import path
                when ``attribute`` is omitted
            attribute: Attribute of ``target`` to replace
            **kwargs: Passed to the patcher (``spec``, ``return_value``, ...)

        Returns:
            The mock that replaced the target
        """
        if attribute is None:
            patcher = mock.patch(target, **kwargs)
        else:
            patcher = mock.patch.object(target, attribute, **kwargs)
        mocked = patcher.start()
        cls._registry.patchers.append(patcher)
        return mocked

    @classmethod
    def expect(cls, mock_object: Any, method: str, times: Optional[int] = None,
               args: Optional[Tuple[Any, ...]] = None, kwargs: Optional[dict] = None) -> Expectation:
        expectation = Expectation(mock_object, method, times, args, kwargs)
        cls._registry.expectations.append(expectation)
        return expectation

    @classmethod
    def is_active(cls) -> bool:
        return bool(cls._registry.patchers or cls._registry.expectations)

    @classmethod
    def close(cls) -> None:
        """
        Stop all patches, verify expectations and reset the registry.

        Raises:
            ExpectationNotMetError: If any expectation was not satisfied
        """
        registry = cls._registry
        cls._registry = _Registry()

        unmet = [e for e in registry.expectations if not e.is_met()]
        for patcher in reversed(registry.patchers):
            patcher.stop()

        if unmet:
            descriptions = [e.describe() for e in unmet]
            raise ExpectationNotMetError(
                'Mock expectations were not met: ' + '; '.join(descriptions),
                missing=descriptions,
            )
