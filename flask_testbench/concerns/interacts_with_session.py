"""
Session helpers.

The session lives in the test client's cookie jar, so values written here are
visible to the next simulated request and values written by a request are
visible to the assertions.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Mapping, Union

_MISSING = object()


class InteractsWithSession:

    @contextmanager
    def session_transaction(self):
        """Open the client's session for reading and writing."""
        with self.app.client.session_transaction(base_url=self.base_url) as sess:
            yield sess

    def with_session(self, data: Mapping[str, Any]) -> 'InteractsWithSession':
        """Store ``data`` in the session before the next request."""
        with self.session_transaction() as sess:
            sess.update(data)
        return self

    def session(self, data: Mapping[str, Any]) -> 'InteractsWithSession':
        return self.with_session(data)

    def flush_session(self) -> 'InteractsWithSession':
        with self.session_transaction() as sess:
            sess.clear()
        return self

    def session_data(self) -> Dict[str, Any]:
        with self.session_transaction() as sess:
            return dict(sess)

    def see_in_session(self, key: str, value: Any = _MISSING) -> 'InteractsWithSession':
        return self.assert_session_has(key, value)

    def assert_session_has(self, key: Union[str, Mapping[str, Any]], value: Any = _MISSING) -> 'InteractsWithSession':
        if isinstance(key, Mapping):
            return self.assert_session_has_all(key)

        data = self.session_data()
        assert key in data, f"Session missing key: {key}"
        if value is not _MISSING:
            assert data[key] == value, f"Session key [{key}] is {data[key]!r}, expected {value!r}"
        return self

    def assert_session_has_all(self, bindings: Union[Mapping[str, Any], Iterable[str]]) -> 'InteractsWithSession':
        if isinstance(bindings, Mapping):
            for key, value in bindings.items():
                self.assert_session_has(key, value)
        else:
            for key in bindings:
                self.assert_session_has(key)
        return self

    def assert_session_missing(self, key: Union[str, Iterable[str]]) -> 'InteractsWithSession':
        keys = [key] if isinstance(key, str) else list(key)
        data = self.session_data()
        for name in keys:
            assert name not in data, f"Session has unexpected key: {name}"
        return self
