"""Command-line interface: stream a chat completion to the terminal."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from genai_client.client import AsyncGenAIClient
from genai_client.config import ClientConfig, load_config
from genai_client.errors import APIError, StreamCancelledError
from genai_client.types import ChatCompletion, ChatMessage, ToolCall

console = Console()


def _mask(secret: str) -> str:
    if not secret:
        return "(unset)"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:3]}...{secret[-4:]}"


def _print_tool_calls(tool_calls: list[ToolCall]) -> None:
    table = Table(title="Tool calls")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("function")
    table.add_column("arguments")
    for i, tc in enumerate(tool_calls):
        table.add_row(str(i), tc.id, tc.function.name, tc.function.arguments)
    console.print(table)


async def _stream_chat(config: ClientConfig, model: str, messages: list[ChatMessage]) -> int:
    async with AsyncGenAIClient(config) as client:
        handle = await client.create_chat_completion(model, messages, stream=True)
        try:
            async for update in handle:
                if update.error is not None:
                    if isinstance(update.error, StreamCancelledError):
                        console.print("\n[yellow]Cancelled.[/yellow]")
                        return 130
                    console.print(f"\n[red]Stream error: {update.error}[/red]")
                    return 1
                chunk: ChatCompletion = update.payload
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if update.done:
                    if choice.message.tool_calls:
                        console.print()
                        _print_tool_calls(choice.message.tool_calls)
                    continue
                text = choice.delta.content_text()
                if text:
                    console.print(text, end="", markup=False, highlight=False)
        except asyncio.CancelledError:
            handle.cancel()
            await handle.wait()
            raise
        console.print()
    return 0


async def _complete_chat(config: ClientConfig, model: str, messages: list[ChatMessage]) -> int:
    async with AsyncGenAIClient(config) as client:
        result = await client.create_chat_completion(model, messages)
    if not result.choices:
        console.print("[red]No choices returned.[/red]")
        return 1
    message = result.choices[0].message
    if message.content_text():
        console.print(Markdown(message.content_text()))
    if message.tool_calls:
        _print_tool_calls(message.tool_calls)
    return 0


@click.group()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to genai_client.yaml (auto-detected from CWD or ~/.config/genai-client/)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """genai-client - talk to an OpenAI-compatible API."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config, config_file = load_config(config_path)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    if verbose:
        config = config.model_copy(update={"verbose": True})
    ctx.obj = {"config": config, "config_file": config_file}


@main.command()
@click.argument("prompt")
@click.option("--model", "-m", default=None, help="Model name (defaults to the profile's)")
@click.option("--system", "-s", "system_prompt", default=None, help="System prompt")
@click.option("--no-stream", is_flag=True, help="Wait for the full response")
@click.pass_context
def chat(ctx: click.Context, prompt: str, model: str | None,
         system_prompt: str | None, no_stream: bool):
    """Send PROMPT as a user message and print the reply."""
    config: ClientConfig = ctx.obj["config"]
    model = model or config.active_profile.default_model

    messages: list[ChatMessage] = []
    if system_prompt:
        messages.append(ChatMessage.system(system_prompt))
    messages.append(ChatMessage.user(prompt))

    runner = _complete_chat if no_stream else _stream_chat
    try:
        code = asyncio.run(runner(config, model, messages))
    except APIError as e:
        console.print(f"[red]API error ({e.status_code}): {e.message}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)
    sys.exit(code)


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context):
    """Print the resolved configuration (secrets masked)."""
    config: ClientConfig = ctx.obj["config"]
    config_file = ctx.obj["config_file"]
    if config_file:
        console.print(f"[dim]Config: {config_file}[/dim]")
    else:
        console.print("[dim]Config: defaults (no genai_client.yaml found)[/dim]")

    table = Table(title=f"Profiles (active: {config.profile})")
    table.add_column("name")
    table.add_column("base_url")
    table.add_column("api_key")
    table.add_column("organization")
    table.add_column("default_model")
    for name, profile in config.profiles.items():
        table.add_row(
            name, profile.base_url, _mask(profile.api_key),
            profile.organization or "-", profile.default_model,
        )
    console.print(table)
    console.print(
        f"timeout={config.timeout}s connect={config.connect_timeout}s "
        f"read={config.read_timeout}s stream_read={config.stream_read_timeout}s "
        f"verbose={config.verbose}"
    )


if __name__ == "__main__":
    main()
