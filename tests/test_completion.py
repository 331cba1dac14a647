"""
Agents SDK completion client tests.

``Runner.run`` is replaced so no request leaves the process.
"""

from types import SimpleNamespace

import pytest
from openai import AsyncOpenAI

import completion
from completion import AgentCompletionClient, CompletionClient
from errors import CompletionFailure


MESSAGES = [
    {"role": "system", "content": "You recommend books."},
    {"role": "user", "content": "Recommend a mystery novel"},
]


@pytest.fixture
def client():
    return AgentCompletionClient(
        external_client=AsyncOpenAI(api_key="test-key", base_url="http://localhost:9/v1"),
        model_name="test-model"
    )


def fake_runner(recorded, output=None, error=None):
    async def run(starting_agent, input, run_config):
        recorded.append({"agent": starting_agent, "input": input, "run_config": run_config})
        if error is not None:
            raise error
        return SimpleNamespace(final_output=output)
    return run


class TestAgentCompletionClient:
    """complete()"""

    @pytest.mark.asyncio
    async def test_passes_messages_and_temperature(self, client, monkeypatch):
        recorded = []
        monkeypatch.setattr(completion.Runner, "run", fake_runner(recorded, output="Try 'Gone Girl'."))

        reply = await client.complete(MESSAGES, temperature=0.7)

        assert reply == "Try 'Gone Girl'."
        assert recorded[0]["input"] == MESSAGES
        assert recorded[0]["agent"].model_settings.temperature == 0.7
        assert recorded[0]["run_config"].model is client._model

    @pytest.mark.asyncio
    async def test_provider_error_becomes_completion_failure(self, client, monkeypatch):
        monkeypatch.setattr(completion.Runner, "run", fake_runner([], error=RuntimeError("429 Too Many Requests")))

        with pytest.raises(CompletionFailure) as exc_info:
            await client.complete(MESSAGES, temperature=0.7)

        assert "429" in exc_info.value.reason
        assert exc_info.value.code == "ERR_AGENT_001"

    @pytest.mark.asyncio
    async def test_non_text_output_is_completion_failure(self, client, monkeypatch):
        monkeypatch.setattr(completion.Runner, "run", fake_runner([], output=None))

        with pytest.raises(CompletionFailure):
            await client.complete(MESSAGES, temperature=0.7)

    def test_satisfies_protocol(self, client):
        assert isinstance(client, CompletionClient)
