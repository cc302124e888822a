from __future__ import annotations

import pytest

from gymcycle.config import ConfigurationError, storage


def test_get_database_uri_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", " postgresql+psycopg://gym@db/lifecycle ")

    uri = storage.get_database_uri()

    assert uri == "postgresql+psycopg://gym@db/lifecycle"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_get_database_uri_requires_a_value(
    monkeypatch: pytest.MonkeyPatch, value: str | None
) -> None:
    if value is None:
        monkeypatch.delenv("DATABASE_URI", raising=False)
    else:
        monkeypatch.setenv("DATABASE_URI", value)

    with pytest.raises(ConfigurationError, match="DATABASE_URI"):
        storage.get_database_uri()
