"""
HTTP request simulation against the application under test.

Requests go through the application's Flask test client, so cookies (and with
them the session) persist between calls inside one test. Relative URIs are
resolved against ``base_url``. Every ``see_*``/``assert_*`` helper inspects the
most recent response:

    self.get('/orders/1').see_status_code(200).see_json({'id': 1})
    self.json('POST', '/orders', {'sku': 'A-1'}).see_json_structure(['id', 'sku'])
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from flask import url_for
from werkzeug.test import TestResponse

from flask_testbench.config import DEFAULT_BASE_URL
from flask_testbench.exceptions import ResponseError

REDIRECT_STATUS_CODES = (301, 302, 303, 307, 308)
MAX_REDIRECTS = 20

JsonStructure = Union[Mapping[str, Any], List[Any]]


class MakesHttpRequests:
    """Simulate requests and assert on the last response."""

    base_url = DEFAULT_BASE_URL
    response: Optional[TestResponse] = None
    current_uri: Optional[str] = None

    # -- request configuration ----------------------------------------

    def with_server_variables(self, server: Mapping[str, Any]) -> 'MakesHttpRequests':
        """Set WSGI environ entries sent with every following request."""
        self.server_variables = dict(server)
        return self

    def without_middleware(self, *names: str) -> 'MakesHttpRequests':
        """Disable all request middleware, or only the named hook functions."""
        self.app.without_middleware(list(names) or None)
        return self

    def with_middleware(self) -> 'MakesHttpRequests':
        self.app.with_middleware()
        return self

    def disable_middleware_for_all_tests(self) -> None:
        self.without_middleware()

    def prepare_url_for_request(self, uri: str) -> str:
        if uri.startswith(('http://', 'https://')):
            return uri
        return f"{self.base_url.rstrip('/')}/{uri.lstrip('/')}"

    # -- requests -------------------------------------------------------

    def call(self, method: str, uri: str, data: Any = None, headers: Optional[Mapping[str, str]] = None,
             json: Any = None, query_string: Any = None, follow_redirects: bool = False,
             **kwargs) -> TestResponse:
        """
        Send a request through the test client and remember the response.

        Args:
            method: HTTP method
            uri: Absolute URL or path relative to ``base_url``
            data: Form data or raw body
            headers: Request headers
            json: Object to send as a JSON body
            query_string: Query string mapping or string
            follow_redirects: Let the client follow redirects
            **kwargs: Passed to ``FlaskClient.open``

        Returns:
            The werkzeug test response
        """
        options = dict(kwargs)
        for key, value in (('data', data), ('headers', headers), ('json', json),
                           ('query_string', query_string)):
            if value is not None:
                options[key] = value

        environ = dict(options.pop('environ_overrides', {}) or {})
        environ.update(self.server_variables)

        self.current_uri = self.prepare_url_for_request(uri)
        self.response = self.app.client.open(
            self.current_uri,
            method=method.upper(),
            environ_overrides=environ,
            follow_redirects=follow_redirects,
            **options,
        )
        return self.response

    def get(self, uri: str, headers: Optional[Mapping[str, str]] = None, **kwargs) -> 'MakesHttpRequests':
        self.call('GET', uri, headers=headers, **kwargs)
        return self

    def post(self, uri: str, data: Any = None, headers: Optional[Mapping[str, str]] = None,
             **kwargs) -> 'MakesHttpRequests':
        self.call('POST', uri, data=data, headers=headers, **kwargs)
        return self

    def put(self, uri: str, data: Any = None, headers: Optional[Mapping[str, str]] = None,
            **kwargs) -> 'MakesHttpRequests':
        self.call('PUT', uri, data=data, headers=headers, **kwargs)
        return self

    def patch(self, uri: str, data: Any = None, headers: Optional[Mapping[str, str]] = None,
              **kwargs) -> 'MakesHttpRequests':
        self.call('PATCH', uri, data=data, headers=headers, **kwargs)
        return self

    def delete(self, uri: str, data: Any = None, headers: Optional[Mapping[str, str]] = None,
               **kwargs) -> 'MakesHttpRequests':
        self.call('DELETE', uri, data=data, headers=headers, **kwargs)
        return self

    def json(self, method: str, uri: str, data: Any = None,
             headers: Optional[Mapping[str, str]] = None) -> 'MakesHttpRequests':
        """Send ``data`` as a JSON body and ask for a JSON response."""
        request_headers = {'Accept': 'application/json'}
        request_headers.update(headers or {})
        self.call(method, uri, json=data if data is not None else {}, headers=request_headers)
        return self

    def follow_redirects(self) -> 'MakesHttpRequests':
        """Follow redirects of the last response until a non-redirect is reached."""
        hops = 0
        while self._require_response().status_code in REDIRECT_STATUS_CODES:
            if hops >= MAX_REDIRECTS:
                raise ResponseError(
                    f"Exceeded {MAX_REDIRECTS} redirects following [{self.current_uri}].",
                    details={'location': self.response.location},
                )
            self.call('GET', self.response.location)
            hops += 1
        return self

    # -- response assertions -------------------------------------------

    def _require_response(self) -> TestResponse:
        if self.response is None:
            raise ResponseError("No request has been made in this test")
        return self.response

    def decode_response_json(self) -> Any:
        response = self._require_response()
        decoded = response.get_json(silent=True)
        assert decoded is not None, (
            f"Invalid JSON was returned from the route [{self.current_uri}]."
        )
        return decoded

    def see_status_code(self, status: int) -> 'MakesHttpRequests':
        actual = self._require_response().status_code
        assert actual == status, f"Expected status code {status}, got {actual}."
        return self

    def assert_response_status(self, code: int) -> 'MakesHttpRequests':
        return self.see_status_code(code)

    def assert_response_ok(self) -> 'MakesHttpRequests':
        actual = self._require_response().status_code
        assert actual == 200, f"Expected status code 200, got {actual}."
        return self

    def see(self, text: str) -> 'MakesHttpRequests':
        body = self._require_response().get_data(as_text=True)
        assert text in body, f"Failed asserting that the response contains [{text}]."
        return self

    def dont_see(self, text: str) -> 'MakesHttpRequests':
        body = self._require_response().get_data(as_text=True)
        assert text not in body, f"Failed asserting that the response does not contain [{text}]."
        return self

    def see_json(self, data: Optional[Mapping[str, Any]] = None) -> 'MakesHttpRequests':
        """Assert the response is JSON and, when given, contains ``data``."""
        if data is None:
            self.decode_response_json()
            return self
        return self.see_json_contains(data)

    def see_json_equals(self, data: Any) -> 'MakesHttpRequests':
        actual = self.decode_response_json()
        assert actual == data, f"Expected JSON {data!r}, got {actual!r}."
        return self

    def see_json_contains(self, data: Mapping[str, Any]) -> 'MakesHttpRequests':
        actual = self.decode_response_json()
        for key, value in data.items():
            assert _contains_fragment(actual, key, value), (
                f"Unable to find JSON fragment {{{key!r}: {value!r}}} within {actual!r}."
            )
        return self

    def dont_see_json(self, data: Mapping[str, Any]) -> 'MakesHttpRequests':
        actual = self.decode_response_json()
        for key, value in data.items():
            assert not _contains_fragment(actual, key, value), (
                f"Found unexpected JSON fragment {{{key!r}: {value!r}}} within {actual!r}."
            )
        return self

    def see_json_structure(self, structure: Optional[JsonStructure] = None,
                           response_data: Any = None) -> 'MakesHttpRequests':
        """
        Assert the JSON response has the given shape.

        ``structure`` is a list of required keys, where an item may itself be a
        mapping of key to nested structure. The key ``'*'`` applies its nested
        structure to every element of a list:

            self.see_json_structure(['id', {'items': {'*': ['sku', 'qty']}}])
        """
        if structure is None:
            return self.see_json()
        if response_data is None:
            response_data = self.decode_response_json()
        _assert_structure(structure, response_data)
        return self

    def see_header(self, name: str, value: Optional[str] = None) -> 'MakesHttpRequests':
        headers = self._require_response().headers
        assert name in headers, f"Header [{name}] not present on response."
        if value is not None:
            actual = headers.get(name)
            assert actual == value, f"Header [{name}] was found, but value [{actual}] does not match [{value}]."
        return self

    def see_cookie(self, name: str, value: Optional[str] = None) -> 'MakesHttpRequests':
        cookies = _response_cookies(self._require_response())
        assert name in cookies, f"Cookie [{name}] not present on response."
        if value is not None:
            assert cookies[name] == value, (
                f"Cookie [{name}] was found, but value [{cookies[name]}] does not match [{value}]."
            )
        return self

    def assert_redirected_to(self, uri: str) -> 'MakesHttpRequests':
        response = self._require_response()
        assert response.status_code in REDIRECT_STATUS_CODES, (
            f"Expected a redirect, got status code {response.status_code}."
        )
        expected = self.prepare_url_for_request(uri)
        actual = self.prepare_url_for_request(response.location or '')
        assert actual == expected, f"Expected redirect to [{expected}], got [{actual}]."
        return self

    def assert_redirected_to_route(self, endpoint: str, **values) -> 'MakesHttpRequests':
        with self.app.test_request_context(base_url=self.base_url):
            target = url_for(endpoint, _external=True, **values)
        return self.assert_redirected_to(target)


def _contains_fragment(data: Any, key: str, value: Any) -> bool:
    if isinstance(data, dict):
        if key in data and data[key] == value:
            return True
        return any(_contains_fragment(item, key, value) for item in data.values())
    if isinstance(data, list):
        return any(_contains_fragment(item, key, value) for item in data)
    return False


def _assert_structure(structure: JsonStructure, data: Any) -> None:
    if isinstance(structure, Mapping):
        for key, nested in structure.items():
            if key == '*':
                assert isinstance(data, list), f"Expected a list for wildcard structure, got {type(data).__name__}."
                for item in data:
                    _assert_structure(nested, item)
            else:
                assert isinstance(data, dict) and key in data, f"Missing JSON key [{key}]."
                _assert_structure(nested, data[key])
        return

    for item in structure:
        if isinstance(item, Mapping):
            _assert_structure(item, data)
        else:
            assert isinstance(data, dict) and item in data, f"Missing JSON key [{item}]."


def _response_cookies(response: TestResponse) -> Dict[str, str]:
    cookies = {}
    for header in response.headers.getlist('Set-Cookie'):
        name, _, rest = header.partition('=')
        cookies[name.strip()] = rest.split(';', 1)[0].strip().strip('"')
    return cookies
