"""
Authentication impersonation through Flask-Login session keys.

``acting_as(user)`` writes the same keys ``flask_login.login_user`` would, so
the next request loads ``user`` through the application's ``user_loader``. The
user object only needs ``get_id()``, which ``flask_login.UserMixin`` provides.
"""

from typing import Any

from flask_testbench.concerns.interacts_with_session import InteractsWithSession

USER_ID_KEY = '_user_id'
FRESH_KEY = '_fresh'


class InteractsWithAuthentication(InteractsWithSession):

    def be(self, user: Any, fresh: bool = True) -> 'InteractsWithAuthentication':
        """Log ``user`` in for the following requests."""
        with self.session_transaction() as sess:
            sess[USER_ID_KEY] = user.get_id()
            sess[FRESH_KEY] = fresh
        return self

    def logout(self) -> 'InteractsWithAuthentication':
        with self.session_transaction() as sess:
            sess.pop(USER_ID_KEY, None)
            sess.pop(FRESH_KEY, None)
        return self

    def see_is_authenticated(self) -> 'InteractsWithAuthentication':
        assert USER_ID_KEY in self.session_data(), "The user is not authenticated"
        return self

    def dont_see_is_authenticated(self) -> 'InteractsWithAuthentication':
        assert USER_ID_KEY not in self.session_data(), "The user is authenticated"
        return self

    def see_is_authenticated_as(self, user: Any) -> 'InteractsWithAuthentication':
        current = self.session_data().get(USER_ID_KEY)
        expected = user.get_id()
        assert current == expected, (
            f"The logged in user [{current}] is not the expected user [{expected}]"
        )
        return self


class ImpersonatesUsers(InteractsWithAuthentication):

    def acting_as(self, user: Any, fresh: bool = True) -> 'ImpersonatesUsers':
        """Set the currently logged in user for the application."""
        self.be(user, fresh)
        return self
