"""Global test fixtures."""

import pytest


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host IPT_* settings out of the tests."""
    for var in ("IPT_CONFIG_FILE", "IPT_LOG_FILE", "IPT_SERVER__BASE_URL", "IPT_LOGGING__LEVEL"):
        monkeypatch.delenv(var, raising=False)
