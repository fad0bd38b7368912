"""Configuration commands."""

from pathlib import Path
from typing import Optional

import typer

from prdforge.config import (
    DEFAULT_BASE_URL,
    GenerationConfig,
    get_config_path,
    load_generation_config,
    save_generation_config,
)
from prdforge.domain.shared import Err
from prdforge.infrastructure.ai import OllamaClient
from prdforge.interfaces.cli.common import (
    print_error,
    print_header,
    print_success,
    print_warning,
)

app = typer.Typer(help="Generation configuration commands")

config_path_option = typer.Option(None, "--config", "-c", help="Config file path")


@app.command("show")
def show(config: Optional[Path] = config_path_option) -> None:
    """Show the active generation configuration."""
    path = config or get_config_path()
    result = load_generation_config(path)
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)

    cfg = result.value
    print_header("Generation configuration")
    typer.echo(f"Config:      {path}")
    typer.echo(f"Provider:    {cfg.provider}")
    typer.echo(f"Main model:  {cfg.main_model}")
    typer.echo(f"Fallback:    {cfg.fallback_model}")
    typer.echo(f"Base URL:    {cfg.base_url}")
    typer.echo(f"Temperature: {cfg.temperature}")
    if not cfg.supports_streaming:
        print_warning(f"Provider '{cfg.provider}' cannot be used for generation")


@app.command("set")
def set_config(
    main_model: str = typer.Option(..., "--main-model", "-m", help="Model used for generation"),
    fallback_model: Optional[str] = typer.Option(
        None, "--fallback-model", "-f", help="Model used for repairs (default: main model)"
    ),
    provider: str = typer.Option("ollama", "--provider", help="Model provider"),
    base_url: str = typer.Option(DEFAULT_BASE_URL, "--base-url", help="Provider base URL"),
    temperature: float = typer.Option(0.7, "--temperature", "-t", min=0.0, max=2.0),
    config: Optional[Path] = config_path_option,
) -> None:
    """Write the generation configuration."""
    cfg = GenerationConfig(
        provider=provider,
        main_model=main_model,
        fallback_model=fallback_model or main_model,
        base_url=base_url,
        temperature=temperature,
    )
    path = config or get_config_path()
    save_generation_config(cfg, path)
    print_success(f"Saved configuration to {path}")


@app.command("check")
def check(config: Optional[Path] = config_path_option) -> None:
    """Check that the configured Ollama server is reachable."""
    result = load_generation_config(config or get_config_path())
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)

    client = OllamaClient(base_url=result.value.base_url)
    if not client.is_available():
        print_error(f"Ollama is not reachable at {client.base_url}")
        raise typer.Exit(1)
    print_success(f"Ollama is running at {client.base_url}")
