"""The email chat workflow: prepare agent context, then call the agent."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from smail.agents.email_agent import FINALIZE_TOOL
from smail.core.agent import AgentOptions
from smail.core.message import Message
from smail.core.output import AgentOutput
from smail.workflows.multiplexer import StreamMultiplexer
from smail.workflows.pipeline import Step, Workflow

if TYPE_CHECKING:
    from smail.core.agent import Agent
    from smail.transport import SSEChannel
    from smail.voice.base import VoiceAdapter, VoiceOptions

CHAT_WORKFLOW_ID = "email-workflow"

VIEWED_EMAIL_PREFIX = "Current email user is looking at: "


@dataclass(slots=True)
class ChatWorkflowContext:
    """Everything one chat turn reads and produces.

    Steps only ever add to it: ``messages`` and ``email_context`` are set by
    the prepare step, ``output`` by the agent step.
    """

    prompt: str
    temperature: float | None = None
    max_tokens: int | None = None
    system_prompt: str | None = None
    resource_id: str | None = None
    thread_id: str | None = None
    additional_context: Any = None
    channel: SSEChannel | None = None
    is_voice: bool = False
    messages: list[Message] = field(default_factory=list)
    email_context: str | None = None
    output: AgentOutput | None = None

    @property
    def streaming(self) -> bool:
        return self.channel is not None

    def agent_options(self) -> AgentOptions:
        return AgentOptions(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            instructions=self.system_prompt,
            resource_id=self.resource_id,
            thread_id=self.thread_id,
        )


def extract_viewed_email(additional_context: Any) -> Any:
    """Return ``currentEmailBeingViewed[0].data.value`` if present."""
    if not isinstance(additional_context, dict):
        return None
    viewed = additional_context.get("currentEmailBeingViewed")
    if not isinstance(viewed, list) or not viewed:
        return None
    first = viewed[0]
    if not isinstance(first, dict):
        return None
    data = first.get("data")
    if not isinstance(data, dict):
        return None
    return data.get("value")


async def prepare_agent_context(ctx: ChatWorkflowContext) -> ChatWorkflowContext:
    """Build the agent's message list from the prompt and the viewed email."""
    messages = [Message.user(ctx.prompt)]

    value = extract_viewed_email(ctx.additional_context)
    if value is not None:
        ctx.email_context = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        messages.append(Message.user(f"{VIEWED_EMAIL_PREFIX}{ctx.email_context}"))

    ctx.messages = messages
    return ctx


def call_agent_step(
    agent: Agent,
    *,
    voice: VoiceAdapter | None = None,
    voice_options: VoiceOptions | None = None,
    raw_text_deltas: bool = False,
) -> Step[ChatWorkflowContext]:
    """Step invoking the agent, streaming onto the context's channel if it has one."""

    async def call_agent(ctx: ChatWorkflowContext) -> ChatWorkflowContext:
        options = ctx.agent_options()

        if ctx.channel is None:
            ctx.output = await agent.generate(ctx.messages, options)
            return ctx

        if ctx.is_voice and voice is None:
            raise RuntimeError("Voice stream requested but no voice adapter is configured")

        mux = StreamMultiplexer(
            ctx.channel,
            finalize_tool=FINALIZE_TOOL,
            voice=voice if ctx.is_voice else None,
            voice_options=voice_options,
            raw_text_deltas=raw_text_deltas,
        )
        stream = agent.stream(ctx.messages, options)
        await mux.run(stream)
        ctx.output = AgentOutput(content=await stream.text(), usage=await stream.usage())
        return ctx

    return Step(id="call-agent", execute=call_agent, description="Invoke the email agent")


def build_chat_workflow(
    agent: Agent,
    *,
    voice: VoiceAdapter | None = None,
    voice_options: VoiceOptions | None = None,
    raw_text_deltas: bool = False,
) -> Workflow[ChatWorkflowContext]:
    """The two-stage chat workflow around ``agent``."""
    return (
        Workflow(id=CHAT_WORKFLOW_ID)
        .then(
            Step(
                id="prepare-agent-context",
                execute=prepare_agent_context,
                description="Extract the viewed email and build the message list",
            )
        )
        .then(
            call_agent_step(
                agent,
                voice=voice,
                voice_options=voice_options,
                raw_text_deltas=raw_text_deltas,
            )
        )
    )
