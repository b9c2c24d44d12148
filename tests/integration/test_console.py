"""
Integration tests for running CLI commands from a test.
"""

from tests.fixtures.cases import AppTestCase, DatabaseTestCase


class TestRunCommand(AppTestCase):

    def test_arguments_and_exit_code(self):
        code = self.run_command('greet', 'Ada')

        self.assertEqual(code, 0)
        self.see_exit_code(0).see_command_output('Hello Ada')

    def test_boolean_options_become_flags(self):
        self.run_command('greet', 'Ada', shout=True)

        self.see_command_output('HELLO ADA')
        self.assertEqual(self.command_result.exit_code, 0)

    def test_false_options_are_omitted(self):
        self.run_command('greet', 'Ada', shout=False)

        self.assertEqual(self.command_output.strip(), 'Hello Ada')

    def test_non_zero_exit_code(self):
        self.assertEqual(self.run_command('fail'), 3)
        self.see_exit_code(3)

    def test_output_assertion_failure(self):
        self.run_command('greet', 'Ada')

        with self.assertRaises(AssertionError):
            self.see_command_output('Goodbye')

    def test_command_exceptions_propagate(self):
        @self.app.cli.command('explode')
        def explode():
            raise RuntimeError('command failed')

        with self.assertRaises(RuntimeError):
            self.run_command('explode')


class TestRunCommandAgainstDatabase(DatabaseTestCase):

    def test_valued_options(self):
        self.run_command('seed-users', count=2)

        self.see_command_output('Seeded 2 users')
        self.assert_database_count('users', 2)
