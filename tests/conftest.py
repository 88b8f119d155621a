import os

# Must be set before little_wars.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RESOLVER_MODE", "local")

import pytest

from little_wars.core.types import EmptySymbol


@pytest.fixture
def empty_symbols():
    def make(count=30):
        return [EmptySymbol() for _ in range(count)]
    return make
