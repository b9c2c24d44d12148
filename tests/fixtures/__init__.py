"""Fixture application, factories and base test cases shared by the suite."""
