import pytest

from closura.closura_config import DispatchConfig
from closura.closura_runtime import initialize_registry


@pytest.fixture(autouse=True)
def fresh_registry(monkeypatch):
    """Every test gets its own process-wide registry with default settings."""
    for var in ("CLOSURA_DEBUG", "CLOSURA_COERCE_NUMERICS", "CLOSURA_RESOLVE_STRATEGY"):
        monkeypatch.delenv(var, raising=False)
    return initialize_registry(config=DispatchConfig())
