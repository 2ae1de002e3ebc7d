"""CLI entry point using Typer."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from smail.client.http import SPELL_ROUTES, AssistantAPIError, AssistantClient
from smail.client.reducer import ChatMessage, MessageReducer, MessageType
from smail.core.config import Config
from smail.logging_config import configure_logging

app = typer.Typer(
    name="smail",
    help="Streaming email assistant",
    no_args_is_help=True,
)


def main() -> None:
    """Entry point for the CLI."""
    app()


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Bind port")] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Log level (debug, info, ...)")
    ] = None,
) -> None:
    """Run the assistant API server."""
    import uvicorn

    from smail.api.app import create_app

    config = Config.load()
    if log_level:
        config.log_level = log_level
    configure_logging(config.log_level, json_output=config.log_json)

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.log_level.lower(),
    )


@app.command()
def chat(
    prompt: Annotated[str, typer.Argument(help="What to ask the assistant")] = "",
    url: Annotated[str, typer.Option("--url", help="Assistant API base URL")] = (
        "http://127.0.0.1:4112"
    ),
    audio: Annotated[
        Path | None,
        typer.Option("--audio", "-a", help="Send an audio file to the voice route"),
    ] = None,
    spell: Annotated[
        str | None, typer.Option("--spell", "-s", help="Canned spell to invoke")
    ] = None,
    thread: Annotated[str | None, typer.Option("--thread", help="Memory thread id")] = None,
    resource: Annotated[
        str | None, typer.Option("--resource", help="Memory resource id")
    ] = None,
) -> None:
    """Send one request and print the streamed transcript."""
    if audio is None and not prompt:
        typer.echo("Error: a prompt or --audio is required", err=True)
        raise typer.Exit(1)
    if spell is not None and spell not in SPELL_ROUTES:
        typer.echo(f"Error: unknown spell {spell!r}", err=True)
        raise typer.Exit(1)
    if audio is not None and not audio.is_file():
        typer.echo(f"Error: {audio} not found", err=True)
        raise typer.Exit(1)

    try:
        reducer = asyncio.run(_run_chat(url, prompt, audio, spell, thread, resource))
    except AssistantAPIError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    for message in reducer.messages:
        typer.echo(_render(message))


async def _run_chat(
    url: str,
    prompt: str,
    audio: Path | None,
    spell: str | None,
    thread: str | None,
    resource: str | None,
) -> MessageReducer:
    client = AssistantClient(base_url=url)
    try:
        if audio is not None:
            return await client.voice_stream(audio.read_bytes(), filename=audio.name)
        if spell is not None:
            return await client.spell(spell, prompt)
        return await client.stream_chat(prompt, thread_id=thread, resource_id=resource)
    finally:
        await client.close()


def _render(message: ChatMessage) -> str:
    match message.type:
        case MessageType.TEXT:
            return message.content
        case MessageType.TOOL_CALL:
            state = "done" if message.completed else "pending"
            return f"[Tool: {message.tool_name} ({state})]"
        case MessageType.TOOL_RESULT:
            return f"[Result: {message.tool_name}]"
        case MessageType.ACTION:
            return f"[Action] {message.content}"
        case MessageType.TRANSCRIPTION:
            return f"[You said] {message.content}"
        case MessageType.AUDIO:
            return "[Audio]"
        case MessageType.ERROR:
            return f"[Error] {message.content}"
    return message.content
