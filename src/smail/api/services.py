"""Long-lived collaborators shared by the request handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from smail.agents.email_agent import create_email_agent
from smail.agents.rewrite_agent import create_rewrite_agent
from smail.core.memory import InMemoryMemoryStore
from smail.llm.openai_compat import OpenAICompatibleProvider
from smail.voice.base import VoiceOptions
from smail.voice.openai import OpenAIVoice
from smail.workflows.chat import build_chat_workflow

if TYPE_CHECKING:
    from smail.core.agent import Agent
    from smail.core.config import Config
    from smail.core.memory import MemoryStore
    from smail.llm.provider import LLMProvider
    from smail.voice.base import VoiceAdapter
    from smail.workflows.chat import ChatWorkflowContext
    from smail.workflows.pipeline import Workflow


@dataclass(slots=True)
class Services:
    config: Config
    email_agent: Agent
    rewrite_agent: Agent
    chat_workflow: Workflow[ChatWorkflowContext]
    voice: VoiceAdapter | None = None
    memory: MemoryStore | None = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        provider: LLMProvider | None = None,
        rewrite_provider: LLMProvider | None = None,
        voice: VoiceAdapter | None = None,
        memory: MemoryStore | None = None,
    ) -> Services:
        """Wire agents, workflow and voice from config.

        Collaborators passed in are used as-is; the rest are built against
        the configured OpenAI-compatible endpoint.
        """
        if provider is None:
            provider = OpenAICompatibleProvider(
                base_url=config.base_url,
                api_key=config.api_key or "",
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_output_tokens,
            )
        if rewrite_provider is None:
            rewrite_provider = OpenAICompatibleProvider(
                base_url=config.base_url,
                api_key=config.api_key or "",
                model=config.rewrite_model,
                temperature=config.temperature,
                max_tokens=config.max_output_tokens,
            )
        if voice is None and config.api_key:
            voice = OpenAIVoice(
                api_key=config.api_key,
                base_url=config.base_url,
                speech_model=config.voice.speech_model,
                listening_model=config.voice.listening_model,
                audio_format=config.voice.output_format,
            )
        if memory is None:
            memory = InMemoryMemoryStore()

        email_agent = create_email_agent(config, provider, memory)
        return cls(
            config=config,
            email_agent=email_agent,
            rewrite_agent=create_rewrite_agent(rewrite_provider),
            chat_workflow=build_chat_workflow(
                email_agent,
                voice=voice,
                voice_options=cls.voice_options_for(config),
                raw_text_deltas=config.raw_text_deltas,
            ),
            voice=voice,
            memory=memory,
        )

    @staticmethod
    def voice_options_for(config: Config) -> VoiceOptions:
        return VoiceOptions(voice=config.voice.voice, speed=config.voice.speed)

    async def close(self) -> None:
        """Close provider and voice connections."""
        await self.email_agent.close()
        await self.rewrite_agent.close()
        if self.voice is not None:
            await self.voice.close()
