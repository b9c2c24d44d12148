"""
Testing configuration for applications booted by the harness.

``TestingConfig`` is applied to every application the harness creates, before
any test-specific overrides. Values can be driven from the environment or from
a ``.env.testing`` file next to the test run, so CI can point the suite at a
real database without touching code:

    TESTBENCH_DATABASE_URL=postgresql://localhost/app_test pytest

The environment marker (``APP_ENV=testing``) is set before the application
factory runs so that factories which branch on environment pick their testing
branch.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

ENVIRONMENT_VARIABLE = 'APP_ENV'
TESTING_ENVIRONMENT = 'testing'
DEFAULT_BASE_URL = 'http://localhost'


class TestingConfig:
    """
    Base configuration applied to applications under test.

    Attributes mirror Flask configuration keys; only upper-case attributes are
    copied onto ``app.config``.
    """

    __test__ = False

    TESTING = True
    DEBUG = False
    SECRET_KEY = os.environ.get('TESTBENCH_SECRET_KEY', 'testbench-secret-key')

    SQLALCHEMY_DATABASE_URI = os.environ.get('TESTBENCH_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Forms are submitted directly by the test client
    WTF_CSRF_ENABLED = False

    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = os.environ.get('TESTBENCH_LOG_LEVEL', 'WARNING')

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Return upper-case settings as a plain dictionary."""
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


def mark_testing_environment() -> None:
    """Set the process environment marker that signals testing mode."""
    os.environ[ENVIRONMENT_VARIABLE] = TESTING_ENVIRONMENT


def load_environment(base_path: Optional[str] = None) -> List[str]:
    """
    Load ``.env.testing`` files without overriding variables already set.

    Args:
        base_path: Directory to search; defaults to the working directory

    Returns:
        List of files that were loaded
    """
    root = Path(base_path) if base_path else Path.cwd()
    loaded = []

    for name in ('.env.testing', '.env.testing.local'):
        env_file = root / name
        if env_file.exists():
            load_dotenv(env_file, override=False)
            loaded.append(str(env_file))

    return loaded

