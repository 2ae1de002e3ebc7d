"""Agent invocation engine: model + instructions + ordered tool palette."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from smail.core.chunk import TextDeltaChunk, ToolCallChunk, ToolResultChunk
from smail.core.message import Message, ToolCall, ToolResult
from smail.core.output import AgentOutput, AgentStream, RunState
from smail.llm.events import StreamOptions, ToolCallBlock
from smail.logging_config import get_logger
from smail.tools.ordering import ToolOrderGuard, ToolOrderViolation
from smail.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from smail.core.chunk import AgentChunk
    from smail.core.memory import MemoryStore
    from smail.llm.provider import LLMProvider
    from smail.tools.registry import ToolExecutionError

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class AgentError(Exception):
    """The agent run failed (model error, iteration cap)."""


class ToolExecutionFailed(AgentError):
    """A tool call failed; the whole turn is aborted."""

    def __init__(self, tool_name: str, error: ToolExecutionError | None):
        self.tool_name = tool_name
        self.error = error
        detail = error.message if error else "unknown error"
        super().__init__(f"Tool '{tool_name}' failed: {detail}")


class StructuredOutputError(AgentError):
    """The model's final answer did not match the requested output model."""


@dataclass(slots=True)
class AgentOptions:
    """Per-run options.

    ``instructions`` replaces the agent's own instructions for this run.
    Memory is used only when both ``resource_id`` and ``thread_id`` are set.
    """

    temperature: float | None = None
    max_tokens: int | None = None
    instructions: str | None = None
    resource_id: str | None = None
    thread_id: str | None = None

    @property
    def memory_key(self) -> tuple[str, str] | None:
        if self.resource_id and self.thread_id:
            return (self.resource_id, self.thread_id)
        return None


def response_format_for(model: type[BaseModel]) -> dict[str, Any]:
    """OpenAI json_schema response_format for a pydantic model."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": model.__name__,
            "schema": model.model_json_schema(),
        },
    }


class Agent:
    """An LLM with fixed instructions and a bounded, ordered tool palette."""

    __slots__ = (
        "name",
        "instructions",
        "provider",
        "tools",
        "tool_order",
        "memory",
        "max_iterations",
    )

    def __init__(
        self,
        name: str,
        instructions: str,
        provider: LLMProvider,
        tools: ToolRegistry | None = None,
        *,
        tool_order: Sequence[str] | None = None,
        memory: MemoryStore | None = None,
        max_iterations: int = 25,
    ) -> None:
        """Initialize the agent.

        Args:
            name: Display name used in logs
            instructions: System instructions
            provider: Chat-completion provider
            tools: Tool palette (empty when None)
            tool_order: When set, calls that skip ahead in this sequence are rejected
            memory: Optional conversation memory store
            max_iterations: Upper bound on model calls per run
        """
        self.name = name
        self.instructions = instructions
        self.provider = provider
        self.tools = tools or ToolRegistry()
        self.tool_order = list(tool_order) if tool_order else None
        self.memory = memory
        self.max_iterations = max_iterations

    def stream(
        self,
        messages: Sequence[Message],
        options: AgentOptions | None = None,
    ) -> AgentStream:
        """Start a lazy streaming run.

        Nothing is sent to the model until the returned stream is iterated.
        """
        opts = options or AgentOptions()
        return AgentStream(lambda state: self._run(list(messages), opts, state))

    async def generate(
        self,
        messages: Sequence[Message],
        options: AgentOptions | None = None,
        output: type[M] | None = None,
    ) -> AgentOutput:
        """Run to completion and return the collected answer.

        With ``output``, the model is asked for JSON matching that model and
        the parsed instance is returned as ``AgentOutput.object``.
        """
        opts = options or AgentOptions()
        state = RunState()
        response_format = response_format_for(output) if output is not None else None

        async for _ in self._run(list(messages), opts, state, response_format):
            pass

        result = AgentOutput(content=state.text, usage=state.usage)
        if output is not None:
            try:
                result.object = output.model_validate_json(state.last_text)
            except ValidationError as e:
                raise StructuredOutputError(
                    f"{self.name} returned invalid {output.__name__}: {e}"
                ) from e
        return result

    def _build_stream_options(
        self,
        options: AgentOptions,
        cancel_event: asyncio.Event,
        response_format: dict[str, Any] | None,
    ) -> StreamOptions:
        return StreamOptions(
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            response_format=response_format,
            cancel_event=cancel_event,
        )

    async def _run(
        self,
        messages: list[Message],
        options: AgentOptions,
        state: RunState,
        response_format: dict[str, Any] | None = None,
    ) -> AsyncIterator[AgentChunk]:
        """Run the agent loop with tool execution."""
        memory_key = options.memory_key if self.memory is not None else None
        history: list[Message] = []
        if memory_key is not None and self.memory is not None:
            history = await self.memory.load(*memory_key)

        conversation = [
            Message.system(options.instructions or self.instructions),
            *history,
            *messages,
        ]
        new_messages = list(messages)
        guard = ToolOrderGuard(self.tool_order) if self.tool_order else None
        cancel_event = asyncio.Event()
        stream_options = self._build_stream_options(options, cancel_event, response_format)
        schemas = self.tools.get_schemas() or None

        log = logger.bind(agent=self.name, model=self.provider.model)

        try:
            for _turn in range(self.max_iterations):
                state.turns += 1
                response_content = ""
                tool_calls: list[ToolCall] = []

                stream = self.provider.stream(conversation, tools=schemas, options=stream_options)

                async for event in stream:
                    match event.type:
                        case "text_delta":
                            response_content += event.delta
                            state.text += event.delta
                            yield TextDeltaChunk(event.delta)

                        case "toolcall_end":
                            tc_block: ToolCallBlock = event.tool_call
                            tc = ToolCall(
                                id=tc_block.id,
                                name=tc_block.name,
                                arguments=tc_block.arguments,
                            )
                            tool_calls.append(tc)
                            yield ToolCallChunk(tc)

                        case "done":
                            state.usage.add(event.message.usage)

                        case "error":
                            raise AgentError(event.message.error_message or "LLM stream error")

                state.last_text = response_content
                assistant_msg = Message.assistant(response_content, tool_calls or None)
                conversation.append(assistant_msg)
                new_messages.append(assistant_msg)

                # If no tool calls, we're done
                if not tool_calls:
                    break

                for tool_call in tool_calls:
                    result = await self._execute_tool(tool_call, guard, log)
                    tool_msg = Message.tool_result(result)
                    conversation.append(tool_msg)
                    new_messages.append(tool_msg)
                    yield ToolResultChunk(result)
            else:
                raise AgentError(f"{self.name} exceeded {self.max_iterations} iterations")
        finally:
            # Stops any provider request still in flight when the consumer goes away
            cancel_event.set()

        if memory_key is not None and self.memory is not None:
            await self.memory.append(*memory_key, new_messages)

        log.info(
            "agent_run_complete",
            turns=state.turns,
            total_tokens=state.usage.total_tokens,
        )

    async def _execute_tool(
        self,
        tool_call: ToolCall,
        guard: ToolOrderGuard | None,
        log: Any,
    ) -> ToolResult:
        if guard is not None:
            try:
                guard.check(tool_call.name)
            except ToolOrderViolation as e:
                log.warning(
                    "tool_order_violation",
                    tool_name=tool_call.name,
                    expected=e.expected,
                )
                return ToolResult(
                    tool_call_id=tool_call.id,
                    name=tool_call.name,
                    result={"error": str(e)},
                    is_error=True,
                )

        exec_result = await self.tools.execute(tool_call.name, tool_call.arguments)
        if exec_result.is_error:
            log.error(
                "tool_execution_failed",
                tool_name=tool_call.name,
                kind=exec_result.error.kind if exec_result.error else None,
            )
            raise ToolExecutionFailed(tool_call.name, exec_result.error)

        if guard is not None:
            guard.record(tool_call.name)

        return ToolResult(
            tool_call_id=tool_call.id,
            name=tool_call.name,
            result=exec_result.result,
        )

    async def close(self) -> None:
        """Clean up resources."""
        await self.provider.close()
