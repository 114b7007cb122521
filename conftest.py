import os
from datetime import datetime

import pytest

os.environ.setdefault("APP_ENV", "testing")


@pytest.fixture
def fixed_now() -> datetime:
    # A Monday morning, site-local wall clock.
    return datetime(2026, 3, 2, 8, 0, 0)
