import pytest

from motiongen.utils import openai_client
from motiongen.utils.config import settings


@pytest.fixture(autouse=True)
def _reset_cache():
    openai_client.get_openai_client.cache_clear()
    yield
    openai_client.get_openai_client.cache_clear()


def test_missing_key_raises(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "")
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        openai_client.get_openai_client()


def test_client_is_shared_and_uses_settings(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(settings, "openai_base_url", "http://llm.local/v1")
    monkeypatch.setattr(settings, "openai_timeout", 42.0)
    client = openai_client.get_openai_client()
    assert openai_client.get_openai_client() is client
    assert str(client.base_url).startswith("http://llm.local/v1")
    assert client.api_key == "sk-test"
