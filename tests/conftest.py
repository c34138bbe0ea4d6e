import logging

import pytest

from utils.config import get_settings
from utils.schemas import UserRecord


@pytest.fixture
def users() -> list[UserRecord]:
    return [
        UserRecord(id=1, name="Leanne Graham", email="Sincere@april.biz"),
        UserRecord(id=2, name="Ervin Howell", email="Shanna@melissa.tv"),
        UserRecord(id=3, name="Clementine Bauch", email="Nathan@yesenia.net"),
        UserRecord(id=4, name="Patricia Lebsack", email="Julianne.OConner@kory.org"),
        UserRecord(id=5, name="Chelsey Dietrich", email="Lucio_Hettinger@annie.ca"),
        UserRecord(id=6, name="Mrs. Dennis Schulist", email="Karley_Dach@jasper.info"),
        UserRecord(id=7, name="Kurtis Weissnat", email="Telly.Hoeger@billy.biz"),
    ]


@pytest.fixture
def users_json(users) -> list[dict]:
    return [
        {**user.model_dump(), "username": f"user{user.id}", "phone": "1-770-736-8031"}
        for user in users
    ]


@pytest.fixture
def clean_env(monkeypatch):
    """Isolate Settings from the caller's environment."""
    for name in (
        "SOURCE_API_URL",
        "DESTINATION_API_URL",
        "HTTP_TIMEOUT",
        "EMAIL_SUFFIX",
        "DELIVERY_MAX_ATTEMPTS",
        "DELIVERY_RETRY_DELAY",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logging():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
