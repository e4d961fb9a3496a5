"""
Slash command surface.

Hosts construct a ``DepsDevExtension`` with the capabilities it needs (an
``httpx.Client`` and a config) and dispatch commands to it by name, passing
the active worktree on each run:

    extension = DepsDevExtension(http_client=httpx.Client())
    output = extension.run_slash_command("depsdev-dump", [], LocalWorktree("."))
    print(output.text)
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

import httpx

from .batch_client import DepsDevClient
from .cli_config import DumpConfig
from .error_handling import (
    ErrorCategory,
    ManifestParseError,
    ManifestUnavailableError,
    UnknownCommandError,
    get_error_handler,
)
from .parsers import parse_cargo_manifest
from .structured_logging import get_command_logger, log_command_invocation

OUTPUT_LABEL = "DepsDev Dump"

READ_FAILURE_MESSAGE = "Could not read {manifest}. Error: {error}."
PARSE_FAILURE_MESSAGE = "Could not parse {manifest}. Error: {error}."


@dataclass(frozen=True)
class SlashCommand:
    """A command the host can offer to the user."""

    name: str
    description: str = ""
    requires_argument: bool = False


@dataclass(frozen=True)
class SlashCommandOutputSection:
    """A labelled span of output text, ``end`` exclusive."""

    start: int
    end: int
    label: str

    @property
    def range(self) -> range:
        return range(self.start, self.end)


@dataclass
class SlashCommandOutput:
    """Text handed back to the host for display."""

    text: str
    sections: List[SlashCommandOutputSection] = field(default_factory=list)

    @classmethod
    def labelled(cls, text: str, label: str) -> "SlashCommandOutput":
        """Output with one section spanning the whole text."""
        return cls(text=text, sections=[SlashCommandOutputSection(0, len(text), label)])

    @classmethod
    def plain(cls, text: str) -> "SlashCommandOutput":
        """Output without sections, used for fallback messages."""
        return cls(text=text, sections=[])


DEPSDEV_DUMP_COMMAND = SlashCommand(
    name="depsdev-dump",
    description="Dump deps.dev metadata for the workspace dependencies in Cargo.toml",
)


@dataclass
class CommandInfo:
    """A registered command and its handler."""

    command: SlashCommand
    handler: Callable[[List[str], object], SlashCommandOutput]


class DepsDevExtension:
    """Dispatches slash commands to their handlers."""

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        config: Optional[DumpConfig] = None,
    ):
        self.config = config or DumpConfig()
        self.client = DepsDevClient(http_client, self.config.network)
        self._commands: Dict[str, CommandInfo] = {}
        self.register(DEPSDEV_DUMP_COMMAND, self._run_dump)

    def register(
        self,
        command: SlashCommand,
        handler: Callable[[List[str], object], SlashCommandOutput],
    ) -> None:
        """Register a handler under the command's name."""
        self._commands[command.name] = CommandInfo(command=command, handler=handler)
        get_command_logger().debug("command_registered", command=command.name)

    def list_commands(self) -> List[SlashCommand]:
        return [info.command for info in self._commands.values()]

    def _lookup(self, command: Union[SlashCommand, str]) -> CommandInfo:
        name = command.name if isinstance(command, SlashCommand) else command
        info = self._commands.get(name)
        if info is None:
            get_error_handler().warning(
                ErrorCategory.COMMAND,
                f"Unknown command: {name}",
                "commands",
                "_lookup",
                details={"registered": sorted(self._commands)},
            )
            raise UnknownCommandError(name)
        return info

    def complete_slash_command_argument(
        self, command: Union[SlashCommand, str], args: Optional[List[str]] = None
    ) -> List[str]:
        """
        Return argument completions for a command.

        Raises:
            UnknownCommandError: If the command is not registered
        """
        self._lookup(command)
        return []

    def run_slash_command(
        self,
        command: Union[SlashCommand, str],
        args: Optional[List[str]] = None,
        worktree=None,
    ) -> SlashCommandOutput:
        """
        Execute a command.

        Raises:
            UnknownCommandError: If the command is not registered
        """
        info = self._lookup(command)
        return info.handler(args or [], worktree)

    def _run_dump(self, args: List[str], worktree) -> SlashCommandOutput:
        manifest = self.config.extraction.manifest_name

        try:
            dependencies = parse_cargo_manifest(worktree, self.config.extraction)
        except ManifestUnavailableError as e:
            log_command_invocation(DEPSDEV_DUMP_COMMAND.name, "manifest_unavailable")
            return SlashCommandOutput.plain(
                READ_FAILURE_MESSAGE.format(manifest=manifest, error=e)
            )
        except ManifestParseError as e:
            log_command_invocation(DEPSDEV_DUMP_COMMAND.name, "manifest_invalid")
            return SlashCommandOutput.plain(
                PARSE_FAILURE_MESSAGE.format(manifest=manifest, error=e)
            )

        result = self.client.query_with_status(dependencies)
        if not result.ok:
            log_command_invocation(
                DEPSDEV_DUMP_COMMAND.name, "query_failed", dependencies=len(dependencies)
            )
            return SlashCommandOutput.plain(result.text)

        log_command_invocation(
            DEPSDEV_DUMP_COMMAND.name, "ok", dependencies=len(dependencies)
        )
        return SlashCommandOutput.labelled(result.text, OUTPUT_LABEL)
