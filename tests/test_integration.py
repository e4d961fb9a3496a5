"""
Integration tests for depsdev-dump.
Tests the slash command surface end to end: worktree -> extraction -> batch
query -> labelled output.
"""

import json

import httpx
import pytest

from depsdev_dump.cli_config import DumpConfig
from depsdev_dump.commands import (
    DEPSDEV_DUMP_COMMAND,
    OUTPUT_LABEL,
    DepsDevExtension,
    SlashCommandOutputSection,
)
from depsdev_dump.error_handling import UnknownCommandError
from depsdev_dump.worktree import LocalWorktree


class TestCommandDispatch:
    """Test command name handling."""

    def test_lists_one_command(self):
        commands = DepsDevExtension().list_commands()
        assert [c.name for c in commands] == ["depsdev-dump"]
        assert not commands[0].requires_argument

    def test_completion_is_empty(self):
        extension = DepsDevExtension()
        assert extension.complete_slash_command_argument("depsdev-dump", []) == []
        assert extension.complete_slash_command_argument(DEPSDEV_DUMP_COMMAND) == []

    def test_unknown_command_completion(self):
        with pytest.raises(UnknownCommandError) as exc_info:
            DepsDevExtension().complete_slash_command_argument("deps-dump", [])
        assert str(exc_info.value) == 'unknown slash command: "deps-dump"'

    def test_unknown_command_run(self, sample_workspace):
        with pytest.raises(UnknownCommandError) as exc_info:
            DepsDevExtension().run_slash_command(
                "cargo-dump", [], LocalWorktree(str(sample_workspace))
            )
        assert exc_info.value.command_name == "cargo-dump"
        assert '"cargo-dump"' in str(exc_info.value)


class TestEndToEnd:
    """Test complete fetch-and-render runs."""

    def test_successful_dump(
        self, sample_workspace, mock_http_client, recorded_requests, deps_dev_response
    ):
        extension = DepsDevExtension(http_client=mock_http_client)
        output = extension.run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(sample_workspace))
        )

        assert json.loads(output.text) == deps_dev_response
        assert output.sections == [
            SlashCommandOutputSection(0, len(output.text), OUTPUT_LABEL)
        ]
        assert output.sections[0].range == range(0, len(output.text))

        body = json.loads(recorded_requests[0].content)
        assert body == {
            "requests": [
                {"versionKey": {"system": "CARGO", "name": "serde", "version": ""}},
                {"versionKey": {"system": "CARGO", "name": "tokio", "version": "1.28"}},
                {"versionKey": {"system": "CARGO", "name": "anyhow", "version": "1.0.71"}},
            ]
        }

    def test_transport_failure_has_no_sections(self, sample_workspace, failing_http_client):
        output = DepsDevExtension(http_client=failing_http_client).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(sample_workspace))
        )

        assert output.text == "API request failed. Error: connection refused."
        assert output.sections == []

    def test_missing_worktree(self, mock_http_client, recorded_requests):
        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], None
        )

        assert output.text.startswith("Could not read Cargo.toml. Error: ")
        assert output.sections == []
        assert recorded_requests == []

    def test_missing_manifest(self, temp_dir, mock_http_client, recorded_requests):
        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(temp_dir))
        )

        assert "does not exist" in output.text
        assert output.sections == []
        assert recorded_requests == []

    def test_unparsable_manifest(self, temp_dir, mock_http_client, recorded_requests):
        (temp_dir / "Cargo.toml").write_text("[workspace.dependencies\nserde =")

        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(temp_dir))
        )

        assert output.text.startswith("Could not parse Cargo.toml. Error: ")
        assert output.sections == []
        assert recorded_requests == []

    def test_empty_dependency_name(self, temp_dir, mock_http_client, recorded_requests):
        (temp_dir / "Cargo.toml").write_text(
            '[workspace.dependencies]\n"" = "1.0"\nanyhow = { version = "1.0.71" }\n'
        )

        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(temp_dir))
        )

        assert len(output.sections) == 1
        assert json.loads(recorded_requests[0].content) == {
            "requests": [
                {"versionKey": {"system": "CARGO", "name": "anyhow", "version": "1.0.71"}}
            ]
        }

    def test_host_worktree_failure(self, mock_http_client, recorded_requests):
        class HostWorktree:
            def read_text_file(self, path):
                raise RuntimeError("host: no such file")

        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], HostWorktree()
        )

        assert output.text.startswith("Could not read Cargo.toml. Error: ")
        assert "host: no such file" in output.text
        assert output.sections == []
        assert recorded_requests == []

    def test_strict_mode_missing_workspace(self, temp_dir, mock_http_client):
        (temp_dir / "Cargo.toml").write_text('[package]\nname = "solo"\n')
        config = DumpConfig()
        config.extraction.strict_workspace_section = True

        output = DepsDevExtension(http_client=mock_http_client, config=config).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(temp_dir))
        )

        assert "Missing required section [workspace]" in output.text
        assert output.sections == []

    def test_relaxed_mode_sends_empty_batch(self, temp_dir, mock_http_client, recorded_requests):
        (temp_dir / "Cargo.toml").write_text('[package]\nname = "solo"\n')

        output = DepsDevExtension(http_client=mock_http_client).run_slash_command(
            "depsdev-dump", [], LocalWorktree(str(temp_dir))
        )

        assert len(output.sections) == 1
        assert json.loads(recorded_requests[0].content) == {"requests": []}

    def test_custom_endpoint(self, sample_workspace, deps_dev_response):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, content=json.dumps(deps_dev_response).encode())

        config = DumpConfig()
        config.network.endpoint = "https://mirror.example.com/versionbatch"

        with httpx.Client(transport=httpx.MockTransport(handler)) as http_client:
            DepsDevExtension(http_client=http_client, config=config).run_slash_command(
                "depsdev-dump", [], LocalWorktree(str(sample_workspace))
            )

        assert seen == ["https://mirror.example.com/versionbatch"]
