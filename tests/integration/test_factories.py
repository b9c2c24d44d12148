"""
Integration tests for factory_boy session binding.
"""

from tests.fixtures.cases import DatabaseTestCase, build
from tests.fixtures.factories import UserFactory


class TestFactories(DatabaseTestCase):

    def setUp(self):
        self.with_factories(UserFactory)
        super().setUp()

    def test_factory_bound_after_application_created(self):
        self.assertIs(UserFactory._meta.sqlalchemy_session, self.resolve('sqlalchemy').session)

    def test_single_model(self):
        user = self.factory(UserFactory, name='Ada')

        self.assertIsNotNone(user.id)
        self.see_in_database('users', {'name': 'Ada'})

    def test_batch(self):
        users = self.factory(UserFactory, count=3)

        self.assertEqual(len(users), 3)
        self.assert_database_count('users', 3)


def test_factories_unbound_after_teardown():
    case = build(DatabaseTestCase)
    case.setUp()
    case.with_factories(UserFactory)
    assert UserFactory._meta.sqlalchemy_session is not None

    case.tearDown()
    assert UserFactory._meta.sqlalchemy_session is None
