"""
Settings tests.
"""

import pytest
from pydantic import ValidationError

from config import Settings


def load(monkeypatch, **env):
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return Settings(_env_file=None)


class TestHistorySetting:
    """MAX_HISTORY_TURNS parsing"""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("MAX_HISTORY_TURNS", raising=False)

        assert load(monkeypatch).max_history_turns == 20

    @pytest.mark.parametrize("value", ["", "0", "none", "None"])
    def test_unlimited(self, monkeypatch, value):
        assert load(monkeypatch, MAX_HISTORY_TURNS=value).max_history_turns is None

    def test_explicit_window(self, monkeypatch):
        assert load(monkeypatch, MAX_HISTORY_TURNS="8").max_history_turns == 8

    @pytest.mark.parametrize("value", ["1", "-4"])
    def test_window_smaller_than_a_pair_rejected(self, monkeypatch, value):
        with pytest.raises(ValidationError):
            load(monkeypatch, MAX_HISTORY_TURNS=value)


class TestRetrievalSetting:
    """retrieval_enabled"""

    def test_disabled_without_both_providers(self, monkeypatch):
        monkeypatch.delenv("COHERE_API_KEY", raising=False)

        assert load(monkeypatch, QDRANT_URL="http://qdrant:6333").retrieval_enabled is False

    def test_enabled_with_both_providers(self, monkeypatch):
        settings = load(monkeypatch, QDRANT_URL="http://qdrant:6333", COHERE_API_KEY="co-key")

        assert settings.retrieval_enabled is True
