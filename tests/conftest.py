import os
import tempfile

# Must be set before posterlink.config is imported.
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="posterlink-tests-")
os.environ["JWT_SECRET"] = "posterlink-test-secret-0123456789abcdef"
os.environ["IMGBB_API_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from posterlink.utils import user_store


@pytest.fixture
def users_db(tmp_path, monkeypatch):
    monkeypatch.setattr(user_store, "USERS_DB_PATH", str(tmp_path / "users.db"))
    user_store.init_users_db()
    return user_store
