import os

from tests.utils.db import cleanup_test_database, provision_test_database

# The engine is bound when app.py is imported, so the URI must be set first.
_database_path, _database_uri = provision_test_database()
os.environ["DATABASE_URL"] = _database_uri


def pytest_sessionfinish(session, exitstatus):
    cleanup_test_database(_database_path)
