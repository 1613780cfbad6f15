from __future__ import annotations

import pytest

from govguard.core.config import get_settings


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    # Settings are cached per process; clear so env overrides never leak across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
