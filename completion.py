"""
Completion client for the session chat backend.

Implements:
- CompletionClient protocol consumed by the orchestrator
- Gemini configuration using AsyncOpenAI + OpenAIChatCompletionsModel + RunConfig
- AgentCompletionClient running a plain Agent over a full message sequence
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from agents import Agent, ModelSettings, OpenAIChatCompletionsModel, RunConfig, Runner
from openai import AsyncOpenAI

from config import settings
from errors import CompletionFailure


logger = logging.getLogger("chatbot-backend")


@runtime_checkable
class CompletionClient(Protocol):
    """Anything that turns a role-tagged message sequence into a reply."""

    async def complete(self, messages: list[dict], temperature: float) -> str: ...


# ========== Gemini Configuration ==========

def create_external_client() -> AsyncOpenAI:
    """
    Configure the AsyncOpenAI client for the OpenAI-compatible provider.

    Retries on transient errors (connection errors, 429, 5xx) are done by the
    client itself, bounded by ``settings.completion_max_retries``.
    """
    return AsyncOpenAI(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        max_retries=settings.completion_max_retries,
        timeout=settings.completion_timeout_seconds,
    )


class AgentCompletionClient:
    """
    Completion collaborator backed by the OpenAI Agents SDK.

    The agent carries no instructions and no tools: the orchestrator's
    message sequence (system instruction, history, new user turn) is passed
    verbatim as the run input.
    """

    def __init__(self, external_client: Optional[AsyncOpenAI] = None, model_name: Optional[str] = None):
        self._client = external_client or create_external_client()
        self._model = OpenAIChatCompletionsModel(
            model=model_name or settings.llm_model,
            openai_client=self._client
        )
        self._run_config = RunConfig(
            model=self._model,
            tracing_disabled=settings.tracing_disabled
        )

    def _create_agent(self, temperature: float) -> Agent:
        return Agent(
            name="Chat Assistant",
            model_settings=ModelSettings(temperature=temperature)
        )

    async def complete(self, messages: list[dict], temperature: float) -> str:
        """
        Run one completion over the given messages.

        Args:
            messages: Role/content dicts, oldest first
            temperature: Sampling temperature

        Returns:
            The assistant reply text

        Raises:
            CompletionFailure: If the provider call fails or returns no text
        """
        agent = self._create_agent(temperature)

        try:
            result = await Runner.run(
                starting_agent=agent,
                input=messages,
                run_config=self._run_config
            )
        except Exception as e:
            logger.error(f"Completion provider error: {str(e)}", exc_info=True)
            raise CompletionFailure(f"{type(e).__name__}: {e}") from e

        output = result.final_output
        if not isinstance(output, str):
            raise CompletionFailure(f"Unexpected reply type {type(output).__name__}")

        return output

    async def close(self) -> None:
        await self._client.close()
