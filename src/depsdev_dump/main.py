import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .batch_client import build_batch_request
from .cli_config import (
    DumpConfig,
    build_config,
    create_sample_config,
    get_config,
    load_config_file,
    validate_config_values,
)
from .commands import DepsDevExtension
from .completion import get_completion_scripts
from .dependency import DependencyDeclaration
from .error_handling import (
    ManifestParseError,
    ManifestUnavailableError,
    UnknownCommandError,
    setup_error_handling,
)
from .parsers import parse_cargo_manifest
from .structured_logging import configure_logging
from .worktree import LocalWorktree

console = Console()
err_console = Console(stderr=True)

PROJECT_DIR = click.Path(exists=True, file_okay=False, dir_okay=True)


def _worktree(config: DumpConfig, project_dir: str) -> LocalWorktree:
    return LocalWorktree(project_dir, config.security)


def load_dependencies(config: DumpConfig, project_dir: str) -> List[DependencyDeclaration]:
    """Extract dependencies, turning library errors into CLI errors."""
    try:
        return parse_cargo_manifest(_worktree(config, project_dir), config.extraction)
    except ManifestUnavailableError as e:
        raise click.ClickException(f"Could not read manifest: {e}")
    except ManifestParseError as e:
        raise click.ClickException(f"Failed to parse manifest: {e}")


def make_http_client(config: DumpConfig) -> httpx.Client:
    return httpx.Client(timeout=config.network.timeout_seconds)


def _run_command(config: DumpConfig, command_name: str, project_dir: str):
    with make_http_client(config) as client:
        extension = DepsDevExtension(http_client=client, config=config)
        return extension.run_slash_command(
            command_name, [], _worktree(config, project_dir)
        )


def _print_output(output, raw: bool) -> None:
    if raw or not output.sections:
        click.echo(output.text)
        return

    for section in output.sections:
        console.print(
            Panel(
                Syntax(output.text[section.start : section.end], "json", word_wrap=True),
                title=f"[bold]{section.label}[/bold]",
                border_style="blue",
            )
        )


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level",
)
@click.option("--verbose", "-v", is_flag=True, help="Shorthand for --log-level INFO")
@click.pass_context
def cli(ctx, version, log_level, verbose):
    """
    📦 depsdev-dump: deps.dev metadata for Cargo workspace dependencies

    Reads [workspace.dependencies] from Cargo.toml, looks every entry up
    with one deps.dev versionbatch request and prints the response.
    """
    if version:
        console.print(f"depsdev-dump version {__version__}", style="bold blue")
        ctx.exit()

    config = get_config()
    if verbose and not log_level:
        log_level = "INFO"
    if log_level:
        config.logging.log_level = log_level.upper()

    configure_logging(config.logging.log_level, config.logging.enable_json)
    setup_error_handling(getattr(logging, config.logging.log_level, logging.WARNING))
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("project_dir", type=PROJECT_DIR, default=".")
@click.option("--raw", is_flag=True, help="Print the response without a panel")
@click.option("--output-file", "-o", type=click.Path(), help="Save the response to a file")
@click.pass_obj
def dump(config: DumpConfig, project_dir: str, raw: bool, output_file: Optional[str]):
    """
    Query deps.dev for every workspace dependency of a project.

    Examples:

      depsdev-dump dump

      depsdev-dump dump path/to/workspace --raw

      depsdev-dump dump -o deps.json
    """
    output = _run_command(config, "depsdev-dump", project_dir)

    if output_file and output.sections:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(output.text)
        err_console.print(f"✅ Response saved to {output_file}", style="green")
    else:
        _print_output(output, raw)

    if not output.sections:
        sys.exit(1)


@cli.command()
@click.argument("project_dir", type=PROJECT_DIR, default=".")
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format for the dependency list",
    show_default=True,
)
@click.pass_obj
def extract(config: DumpConfig, project_dir: str, output_format: str):
    """List the workspace dependencies that would be sent to deps.dev."""
    dependencies = load_dependencies(config, project_dir)

    if output_format.lower() == "json":
        click.echo(json.dumps([dep.to_dict() for dep in dependencies], indent=2))
        return

    if not dependencies:
        console.print("ℹ️  No workspace dependencies found.", style="yellow")
        return

    table = Table(title=f"{config.extraction.manifest_name} workspace dependencies")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    for dep in dependencies:
        table.add_row(dep.name, dep.version or "[dim]unspecified[/dim]")
    console.print(table)


@cli.command()
@click.argument("project_dir", type=PROJECT_DIR, default=".")
@click.pass_obj
def request(config: DumpConfig, project_dir: str):
    """Print the batch request body without sending it."""
    dependencies = load_dependencies(config, project_dir)
    batch = build_batch_request(dependencies, config.network.ecosystem)
    click.echo(batch.to_json(indent=2))


@cli.command()
@click.argument("command_name")
@click.argument("project_dir", type=PROJECT_DIR, default=".")
@click.option("--raw", is_flag=True, help="Print the output without a panel")
@click.pass_obj
def run(config: DumpConfig, command_name: str, project_dir: str, raw: bool):
    """Run a slash command by name, the way an editor host would."""
    try:
        output = _run_command(config, command_name, project_dir)
    except UnknownCommandError as e:
        raise click.ClickException(str(e))

    _print_output(output, raw)
    if not output.sections:
        sys.exit(1)


@cli.command()
@click.argument("command_name")
@click.argument("args", nargs=-1)
@click.pass_obj
def complete(config: DumpConfig, command_name: str, args):
    """Print argument completions for a slash command as JSON."""
    extension = DepsDevExtension(config=config)
    try:
        completions = extension.complete_slash_command_argument(command_name, list(args))
    except UnknownCommandError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(completions))


@cli.command()
@click.pass_obj
def commands(config: DumpConfig):
    """List the registered slash commands."""
    table = Table(title="Slash commands")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for command in DepsDevExtension(config=config).list_commands():
        table.add_row(command.name, command.description)
    console.print(table)


@cli.command()
def info():
    """Show usage information, environment variables and config locations."""
    info_text = """
[bold blue]📋 Supported Manifests:[/bold blue]

• [green]Cargo.toml[/green] - shared dependencies in [cyan]\\[workspace.dependencies][/cyan]

[bold blue]🔎 Version Reporting:[/bold blue]

• [yellow]name = { version = "1.0" }[/yellow] - sent with its version
• [yellow]name = "1.0"[/yellow] - sent with an empty version
• [yellow]name = { path = "..." }[/yellow] - skipped (see extraction.versionless_tables)

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]DEPSDEV_DUMP_ENDPOINT[/cyan] - deps.dev versionbatch URL
• [cyan]DEPSDEV_DUMP_TIMEOUT[/cyan] - request timeout in seconds
• [cyan]DEPSDEV_DUMP_STRICT[/cyan] - fail when \\[workspace] is missing
• [cyan]DEPSDEV_DUMP_VERSIONLESS_TABLES[/cyan] - skip or empty
• [cyan]DEPSDEV_DUMP_RESPONSE_ENCODING[/cyan] - response body encoding
• [cyan]DEPSDEV_DUMP_LOG_LEVEL[/cyan] - log level

[bold blue]📄 Configuration Files:[/bold blue]

• [green].depsdev-dump.json[/green] / [green].depsdev-dump.yaml[/green] - project-level config
• [green]~/.config/depsdev-dump/config.json[/green] - user-level config
• [green]~/.depsdev-dump.json[/green] - user home config

[bold blue]💡 Usage Examples:[/bold blue]

  depsdev-dump dump
  depsdev-dump extract --output-format json
  depsdev-dump request > batch.json
  depsdev-dump run depsdev-dump path/to/workspace
"""
    console.print(
        Panel(info_text, title="[bold]depsdev-dump Information[/bold]", border_style="blue")
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".depsdev-dump.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
@click.pass_obj
def config_show(current_config: DumpConfig):
    """Show the effective configuration."""
    console.print(Panel("[bold blue]🔧 Effective Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]📄 Extraction:[/bold cyan]")
    console.print(f"  Manifest: {current_config.extraction.manifest_name}")
    console.print(
        f"  Table: {current_config.extraction.workspace_section}."
        f"{current_config.extraction.dependencies_key}",
        markup=False,
    )
    console.print(f"  Strict Workspace Section: {current_config.extraction.strict_workspace_section}")
    console.print(f"  Versionless Tables: {current_config.extraction.versionless_tables}")

    console.print("\n[bold cyan]🌐 Network:[/bold cyan]")
    console.print(f"  Endpoint: {current_config.network.endpoint}")
    console.print(f"  Ecosystem: {current_config.network.ecosystem}")
    console.print(f"  Timeout: {current_config.network.timeout_seconds}s")
    console.print(f"  Follow Redirects: {current_config.network.follow_redirects}")
    console.print(f"  Response Encoding: {current_config.network.response_encoding}")

    console.print("\n[bold cyan]📝 Logging:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  JSON Records: {current_config.logging.enable_json}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))

    if not isinstance(config_data, dict):
        raise click.ClickException(f"Could not load config from {config_file}")

    errors = validate_config_values(build_config(config_data))
    if errors:
        for error in errors:
            console.print(f"  • {error}", style="red")
        raise click.ClickException(f"Configuration file {config_file} is invalid")

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


@cli.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"], case_sensitive=False))
def completion(shell: str):
    """Generate shell completion scripts.

    Examples:

      depsdev-dump completion bash > ~/.depsdev-dump-completion.bash
    """
    click.echo(get_completion_scripts()[shell.lower()])


def main():
    cli()


if __name__ == "__main__":
    main()
