"""HTTP routes: chat, voice and spells, streaming and not."""

from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from smail.api.schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    RewriteDraftRequest,
    UsageModel,
    VoiceResponse,
)
from smail.api.services import Services
from smail.core.agent import AgentError
from smail.logging_config import get_logger
from smail.protocol.events import Transcription
from smail.transport import create_sse_stream
from smail.voice.base import VoiceError
from smail.workflows.chat import ChatWorkflowContext
from smail.workflows.pipeline import WorkflowError
from smail.workflows.spells import (
    CANNED_SPELLS,
    CannedSpell,
    Draft,
    EmailContext,
    WordRange,
    rewrite_draft,
    run_canned_spell,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from smail.core.output import AgentOutput
    from smail.transport import SSEChannel
    from smail.voice.base import VoiceAdapter

logger = get_logger(__name__)

router = APIRouter(responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


def _context_from_request(body: ChatRequest, **overrides: Any) -> ChatWorkflowContext:
    return ChatWorkflowContext(
        prompt=body.prompt,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
        system_prompt=body.system_prompt,
        resource_id=body.resource_id,
        thread_id=body.thread_id,
        additional_context=body.additional_context,
        **overrides,
    )


def _usage(output: AgentOutput | None) -> UsageModel | None:
    if output is None:
        return None
    return UsageModel.model_validate(output.usage.to_dict())


def _stream(
    services: Services,
    producer: Callable[[SSEChannel], Awaitable[None]],
    name: str,
) -> StreamingResponse:
    return create_sse_stream(
        producer,
        max_buffered_frames=services.config.sse_max_buffered_frames,
        name=name,
    )


def _parse_form_context(context: str | None) -> Any:
    """Decode the ``context`` form field; invalid JSON is passed through as-is."""
    if not context:
        return None
    try:
        return json.loads(context)
    except json.JSONDecodeError:
        return context


def _require_voice(services: Services) -> VoiceAdapter:
    if services.voice is None:
        raise VoiceError("Voice is not configured (missing API key)")
    return services.voice


async def _generate(services: Services, ctx: ChatWorkflowContext) -> AgentOutput:
    """Run the chat workflow without a channel and return the agent's answer."""
    workflow = services.chat_workflow
    ctx = await workflow.run(ctx)
    if ctx.output is None:
        step_id = workflow.steps[-1].id if workflow.steps else "none"
        raise WorkflowError(workflow.id, step_id, AgentError("agent produced no output"))
    return ctx.output


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(body: ChatRequest, services: ServicesDep) -> ChatResponse:
    output = await _generate(services, _context_from_request(body))
    return ChatResponse(content=output.content, usage=_usage(output))


@router.post("/chat/stream")
async def chat_stream(body: ChatRequest, services: ServicesDep) -> StreamingResponse:
    async def produce(channel: SSEChannel) -> None:
        await services.chat_workflow.run(_context_from_request(body, channel=channel))

    return _stream(services, produce, "chat_stream")


@router.post("/voice", response_model=VoiceResponse, response_model_exclude_none=True)
async def voice(
    services: ServicesDep,
    audio: Annotated[UploadFile | None, File()] = None,
    context: Annotated[str | None, Form()] = None,
) -> VoiceResponse | JSONResponse:
    if audio is None:
        return JSONResponse(status_code=400, content={"error": "audio required"})

    adapter = _require_voice(services)
    config = services.config
    transcription = await adapter.transcribe(await audio.read(), config.voice.input_format)

    output = await _generate(
        services,
        ChatWorkflowContext(prompt=transcription, additional_context=_parse_form_context(context)),
    )
    speech = await adapter.synthesize(output.content, Services.voice_options_for(config))

    return VoiceResponse(
        transcription=transcription,
        text=output.content,
        usage=_usage(output),
        object=output.object,
        audio_data=base64.b64encode(speech).decode("ascii"),
        audio_format=adapter.output_format,
    )


@router.post("/voice/stream", response_model=None)
async def voice_stream(
    services: ServicesDep,
    audio: Annotated[UploadFile | None, File()] = None,
    context: Annotated[str | None, Form()] = None,
) -> StreamingResponse | JSONResponse:
    if audio is None:
        return JSONResponse(status_code=400, content={"error": "audio required"})

    adapter = _require_voice(services)
    # Transcription failures surface as an HTTP error, before the stream opens
    transcription = await adapter.transcribe(
        await audio.read(), services.config.voice.input_format
    )
    additional_context = _parse_form_context(context)

    async def produce(channel: SSEChannel) -> None:
        channel.send(Transcription(text=transcription))
        await services.chat_workflow.run(
            ChatWorkflowContext(
                prompt=transcription,
                additional_context=additional_context,
                channel=channel,
                is_voice=True,
            )
        )

    return _stream(services, produce, "voice_stream")


def _canned_spell_route(
    spell: CannedSpell,
) -> Callable[[ChatRequest, Services], Awaitable[StreamingResponse]]:
    async def endpoint(body: ChatRequest, services: ServicesDep) -> StreamingResponse:
        email_context = None
        if body.context is not None:
            email_context = EmailContext(**body.context.model_dump())

        async def produce(channel: SSEChannel) -> None:
            await run_canned_spell(
                channel, spell, email_context, delay=services.config.spell_delay
            )

        return _stream(services, produce, f"{spell.name}_spell")

    endpoint.__name__ = f"{spell.name.replace('-', '_')}_stream"
    return endpoint


for _spell in CANNED_SPELLS.values():
    router.add_api_route(
        f"/chat/{_spell.name}/stream",
        _canned_spell_route(_spell),
        methods=["POST"],
        response_class=StreamingResponse,
    )


@router.post("/chat/rewrite-draft/stream")
async def rewrite_draft_stream(
    body: RewriteDraftRequest, services: ServicesDep
) -> StreamingResponse:
    word_range = None
    if body.range_context is not None:
        word_range = WordRange(
            min=body.range_context.min,
            max=body.range_context.max,
            range_name=body.range_context.range_name,
        )

    async def produce(channel: SSEChannel) -> None:
        await rewrite_draft(
            channel,
            services.rewrite_agent,
            prompt=body.prompt,
            word_count=body.word_count,
            draft=Draft(subject=body.current_draft.subject, body=body.current_draft.body),
            word_range=word_range,
            temperature=body.temperature,
            max_tokens=body.max_tokens,
        )

    return _stream(services, produce, "rewrite_draft_spell")
