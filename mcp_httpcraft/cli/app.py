"""Command-line entry point for mcp-httpcraft."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer

from mcp_httpcraft.chain import normalize_chain, summarize_chain, validate_chain
from mcp_httpcraft.client import HttpCraftCli
from mcp_httpcraft.config import get_settings
from mcp_httpcraft.decoding import DecodeOptions, Parsed, decode, probe_json
from mcp_httpcraft.errors import HttpCraftError, SizeLimitError
from mcp_httpcraft.logging_setup import setup_logging

app = typer.Typer(help="Run httpcraft and decode its output")


def _read_input(file: Optional[Path]) -> str:
    if file is None or str(file) == "-":
        return sys.stdin.read()
    try:
        return file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        typer.echo(f"[ERROR] Cannot read {file}: {e}", err=True)
        raise typer.Exit(1)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


@app.callback()
def main_callback():
    """Configure logging before any command runs."""
    setup_logging()


@app.command("decode")
def decode_command(
    file: Optional[Path] = typer.Argument(
        None, help="File holding captured stdout (reads stdin when omitted)"
    ),
    validate: Optional[bool] = typer.Option(
        None, "--validate/--no-validate", help="Attach structure warnings"
    ),
    max_size: Optional[int] = typer.Option(
        None, "--max-size", help="Largest accepted input in bytes"
    ),
):
    """Decode captured httpcraft output and print it as JSON."""
    raw = _read_input(file)

    options = DecodeOptions.from_config(get_settings().decoder)
    if validate is not None or max_size is not None:
        options = DecodeOptions(
            max_response_size=max_size if max_size is not None else options.max_response_size,
            validate_structure=validate if validate is not None else options.validate_structure,
        )

    result = decode(raw, options)
    if isinstance(result, SizeLimitError):
        typer.echo(f"[ERROR] {result}", err=True)
        raise typer.Exit(1)

    _echo_json(result.to_dict())


@app.command("chain")
def chain_command(
    file: Optional[Path] = typer.Argument(
        None, help="File holding chain output (reads stdin when omitted)"
    ),
    duration: int = typer.Option(
        0, "--duration", help="Measured duration in ms, used when the output has none"
    ),
):
    """Normalize captured chain output and print its summary."""
    raw = _read_input(file)

    result = decode(raw, DecodeOptions.from_config(get_settings().decoder))
    if isinstance(result, SizeLimitError):
        typer.echo(f"[ERROR] {result}", err=True)
        raise typer.Exit(1)

    probe = probe_json(raw)
    outcome = normalize_chain(probe.value if isinstance(probe, Parsed) else result, duration)
    report = validate_chain(outcome)
    _echo_json({"summary": summarize_chain(outcome), "errors": list(report.errors)})


@app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run_command(
    args: List[str] = typer.Argument(..., help="Arguments passed to httpcraft"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds (defaults to configuration)"
    ),
):
    """Run httpcraft and print the decoded response."""
    client = HttpCraftCli()
    result = asyncio.run(client.execute(args, timeout=timeout))

    if isinstance(result, HttpCraftError):
        typer.echo(f"[ERROR] {result}", err=True)
        raise typer.Exit(1)

    if not result.success:
        typer.echo(f"[ERROR] {result.error}", err=True)
        raise typer.Exit(result.exit_code or 1)

    decoded = decode(result.stdout, client.decode_options)
    if isinstance(decoded, SizeLimitError):
        typer.echo(f"[ERROR] {decoded}", err=True)
        raise typer.Exit(1)

    _echo_json(decoded.to_dict())


@app.command("version")
def version_command():
    """Print the httpcraft version."""
    try:
        version = asyncio.run(HttpCraftCli().get_version())
    except HttpCraftError as e:
        typer.echo(f"[ERROR] {e}", err=True)
        raise typer.Exit(1)
    typer.echo(version)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
