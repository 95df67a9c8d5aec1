from pathlib import Path
from dotenv import load_dotenv
import pytest

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')


@pytest.fixture(autouse=True)
def reset_redis_client(monkeypatch):
    """Give every test a fresh no-op Redis client unless it patches one in."""
    from app.utils import redis_cache

    monkeypatch.setattr(redis_cache, "_redis_client", None)
    yield
