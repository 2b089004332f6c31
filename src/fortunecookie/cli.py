"""fortunecookie CLI - typer application entry point."""

from __future__ import annotations

import asyncio
import atexit
import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from fortunecookie.models.fortune import InvalidThemeError, Theme
from fortunecookie.observability import (
    CallLogger,
    close_file_logging,
    configure_logging,
    get_logger,
)

if TYPE_CHECKING:
    from fortunecookie.models.fortune import FallbackFortune, ValidatedFortune
    from fortunecookie.pipeline import FortuneConfig

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="fortune",
    help="fortunecookie: resilient LLM-generated fortune cookie messages.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)
log = get_logger(__name__)

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_dir: Path | None = None

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML config file (default: ./fortune.yaml if present).",
        envvar="FORTUNE_CONFIG",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_dir: Annotated[
        Path | None,
        typer.Option(
            "--log",
            help="Write debug.jsonl and llm_calls.jsonl to this directory.",
        ),
    ] = None,
) -> None:
    """fortunecookie: resilient LLM-generated fortune cookie messages."""
    global _verbose, _log_dir
    _verbose = verbose
    _log_dir = log_dir

    configure_logging(verbosity=verbose, log_dir=log_dir)
    if log_dir is not None:
        atexit.register(close_file_logging)


def _parse_theme(value: str) -> Theme:
    """Parse a theme argument, exiting with code 2 if it is unknown."""
    try:
        return Theme.parse(value)
    except InvalidThemeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from None


def _load_config(config_path: Path | None) -> FortuneConfig:
    """Load configuration, exiting with code 1 on errors."""
    from fortunecookie.pipeline import ConfigError, load_config

    try:
        return load_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


async def _generate_async(
    config: FortuneConfig,
    theme: Theme,
) -> ValidatedFortune | FallbackFortune:
    """Build an orchestrator, generate one fortune and close the provider."""
    from fortunecookie.pipeline import build_orchestrator
    from fortunecookie.providers import create_provider

    call_logger = CallLogger(_log_dir) if _log_dir is not None else None
    provider = create_provider(
        config.provider,
        api_key=config.api_key,
        call_logger=call_logger,
        timeout=config.timeout,
    )
    try:
        orchestrator = build_orchestrator(config, provider=provider)
        return await orchestrator.generate(theme)
    finally:
        await provider.close()


@app.command()
def version() -> None:
    """Show version information."""
    from fortunecookie import __version__

    console.print(f"fortunecookie v{__version__}")


@app.command()
def generate(
    theme: Annotated[str, typer.Argument(help="Theme: wholesome or dark.")],
    config_path: ConfigOption = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", "-p", help="Override the configured provider."),
    ] = None,
    models: Annotated[
        list[str] | None,
        typer.Option("--model", "-m", help="Model to try; repeat to build a ladder."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the full result as JSON."),
    ] = False,
) -> None:
    """Generate one fortune cookie message."""
    from dataclasses import replace

    from fortunecookie.pipeline import FallbackBankError, LadderError
    from fortunecookie.providers import ProviderError, normalize_provider

    parsed_theme = _parse_theme(theme)
    config = _load_config(config_path)
    if provider:
        config = replace(config, provider=normalize_provider(provider), models=())
    if models:
        config = replace(config, models=tuple(models))

    try:
        result = asyncio.run(_generate_async(config, parsed_theme))
    except (ProviderError, FallbackBankError, LadderError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(json.dumps(result.to_payload()))
        return

    console.print(result.message, highlight=False, markup=False)
    if result.kind == "fallback":
        log.info("fallback_served", theme=parsed_theme.value)


@app.command()
def fallback(
    theme: Annotated[str, typer.Argument(help="Theme: wholesome or dark.")],
    config_path: ConfigOption = None,
) -> None:
    """Print a canned fortune without calling any model."""
    from fortunecookie.pipeline import FallbackBankError, load_fallback_bank

    parsed_theme = _parse_theme(theme)
    config = _load_config(config_path)
    try:
        bank = load_fallback_bank(config.fallbacks_path)
    except FallbackBankError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(bank.pick(parsed_theme), highlight=False, markup=False)


@app.command()
def ladder(config_path: ConfigOption = None) -> None:
    """Show the effective model ladder and retry policy."""
    from fortunecookie.pipeline import LadderError

    config = _load_config(config_path)
    try:
        model_ladder = config.ladder
    except LadderError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    policy = config.retry_policy
    table = Table(title=f"Model ladder ({config.provider})")
    table.add_column("#", justify="right")
    table.add_column("Model")
    for index, model in enumerate(model_ladder, start=1):
        table.add_row(str(index), model)

    console.print()
    console.print(table)
    console.print(
        f"Attempts per model: {policy.max_attempts_per_model}  "
        f"Passes: {policy.max_passes}  "
        f"Pass delay: {policy.pass_delay}s  "
        f"Deadline: {policy.deadline or 'none'}"
    )
    console.print(f"Maximum provider calls: {policy.max_calls(len(model_ladder))}")


@app.command()
def doctor(config_path: ConfigOption = None) -> None:
    """Check configuration, credentials and fallback data."""
    console.print("[bold]fortunecookie Doctor[/bold]")
    console.print()

    all_ok = True
    config = _load_config(config_path)
    console.print(f"  [green]✓[/green] Configuration loaded (provider: {config.provider})")

    all_ok &= _check_credentials(config)
    all_ok &= _check_ladder(config)
    all_ok &= _check_fallbacks(config)
    all_ok &= _check_prompts()

    console.print()
    if all_ok:
        console.print("[green]All checks passed![/green]")
    else:
        console.print("[yellow]Some checks failed.[/yellow]")
        raise typer.Exit(1)


def _check_credentials(config: FortuneConfig) -> bool:
    """Check that the provider credential (or host) is configured."""
    from fortunecookie.providers import KNOWN_PROVIDERS, credential_env_var, normalize_provider

    provider = normalize_provider(config.provider)
    if provider not in KNOWN_PROVIDERS:
        console.print(f"  [red]✗[/red] Unknown provider: {provider}")
        return False

    name = credential_env_var(provider)
    value = config.api_key or os.getenv(name)
    if not value:
        console.print(f"  [red]✗[/red] {name}: not configured")
        return False

    if "KEY" in name:
        display = f"{value[:7]}...{value[-3:]}" if len(value) > 10 else "(set)"
    else:
        display = value
    console.print(f"  [green]✓[/green] {name}: {display}")
    return True


def _check_ladder(config: FortuneConfig) -> bool:
    """Check that a model ladder can be resolved."""
    from fortunecookie.pipeline import LadderError

    try:
        model_ladder = config.ladder
    except LadderError as e:
        console.print(f"  [red]✗[/red] Model ladder: {e}")
        return False
    console.print(f"  [green]✓[/green] Model ladder: {len(model_ladder)} model(s)")
    return True


def _check_fallbacks(config: FortuneConfig) -> bool:
    """Check that the fallback pools load and are non-empty."""
    from fortunecookie.pipeline import FallbackBankError, load_fallback_bank

    try:
        bank = load_fallback_bank(config.fallbacks_path)
    except FallbackBankError as e:
        console.print(f"  [red]✗[/red] Fallbacks: {e}")
        return False
    sizes = ", ".join(f"{theme}={len(pool)}" for theme, pool in bank.pools.items())
    console.print(f"  [green]✓[/green] Fallbacks: {sizes}")
    return True


def _check_prompts() -> bool:
    """Check that the prompt template renders for every theme."""
    from fortunecookie.prompts import (
        TemplateNotFoundError,
        TemplateParseError,
        TemplatePromptBuilder,
    )

    builder = TemplatePromptBuilder()
    try:
        for theme in Theme:
            builder.build(theme)
    except (TemplateNotFoundError, TemplateParseError, KeyError) as e:
        console.print(f"  [red]✗[/red] Prompt template: {e}")
        return False
    console.print("  [green]✓[/green] Prompt template renders for all themes")
    return True


if __name__ == "__main__":
    app()
