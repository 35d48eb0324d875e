"""Tests for chanlog.cli — CLI argument parsing and dispatch."""

import json
import subprocess

import httpx
import pytest

from chanlog.cli import _build_common_parser, _channel_specs, _extract_global_flags, main
from chanlog.http import channel as http_channel
from chanlog.http import overrides as http_overrides_module
from chanlog.http.client import HttpClient
from chanlog.manager import get_manager


URL = "https://example.com/items"


@pytest.fixture
def cli_env(tmp_config_home, tmp_project):
    """Isolated home and project directory for CLI runs."""
    return tmp_project


@pytest.fixture
def mock_http(monkeypatch, client_factory):
    """Route every HttpClient the CLI builds through the mock transport."""
    monkeypatch.setattr(http_overrides_module, "HttpClient", client_factory)
    monkeypatch.setattr(http_channel, "HttpClient", client_factory)


class TestGlobalFlagExtraction:
    """Test the Docker-style two-pass global flag parsing."""

    def test_enable_before_subcommand(self):
        """--enable before subcommand should be extracted."""
        global_args, remaining = _extract_global_flags(["--enable", "http", "channels"])
        assert global_args.enable == ["http"]
        assert remaining == ["channels"]

    def test_enable_after_subcommand(self):
        """--enable after subcommand args should also be extracted."""
        global_args, remaining = _extract_global_flags(["fetch", URL, "-e", "http"])
        assert global_args.enable == ["http"]
        assert remaining == ["fetch", URL]

    def test_verbose_and_quiet_count(self):
        """-v and -Q are counted."""
        global_args, _ = _extract_global_flags(["-v", "-v", "-Q", "channels"])
        assert global_args.verbose == 2
        assert global_args.quiet == 1

    def test_config_with_value(self):
        """--config PATH should be extracted with its value."""
        global_args, remaining = _extract_global_flags(["--config", "/tmp/my.json", "channels"])
        assert global_args.config == "/tmp/my.json"
        assert "/tmp/my.json" not in remaining

    def test_no_global_flags(self):
        """When no global flags, all args pass through."""
        global_args, remaining = _extract_global_flags(["fetch", URL])
        assert global_args.enable is None
        assert global_args.verbose == 0
        assert global_args.config is None
        assert remaining == ["fetch", URL]

    def test_disable_becomes_off_spec(self):
        """--disable NAME collapses to NAME:off after the --enable specs."""
        global_args, _ = _extract_global_flags(["--disable", "trace", "-e", "http"])
        assert _channel_specs(global_args) == ["http", "trace:off"]


class TestCommonParser:

    def test_project_dir(self):
        """Shared parser should accept --project-dir."""
        args = _build_common_parser().parse_args(["--project-dir", "/tmp/x"])
        assert args.project_dir == "/tmp/x"

    def test_defaults(self):
        args = _build_common_parser().parse_args([])
        assert args.project_dir is None


class TestMainEntryPoint:
    """Test the main() function with various argv inputs."""

    def test_version_flag(self, capsys):
        """--version should print version and exit 0."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "chanlog" in capsys.readouterr().out

    def test_no_args_shows_help(self, capsys):
        """Bare 'chanlog' with no args should show help and return 0."""
        assert main([]) == 0
        out = capsys.readouterr().out
        for command in ("channels", "fetch", "ext"):
            assert command in out

    def test_unknown_subcommand_fails(self):
        """Unknown subcommand should exit non-zero."""
        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0

    def test_bad_channel_spec_returns_2(self, cli_env, capsys):
        """A malformed --enable spec is a usage error."""
        assert main(["-e", "http:maybe", "channels"]) == 2
        assert "unknown channel state" in capsys.readouterr().err


# ===================================================================
# channels
# ===================================================================


class TestChannelsCommand:

    def test_lists_builtin_channels(self, cli_env, capsys):
        assert main(["channels"]) == 0
        out = capsys.readouterr().out
        assert "http   [off]" in out
        assert "trace  [off]" in out

    def test_enable_flag_applies(self, cli_env, capsys):
        assert main(["channels", "--enable", "trace"]) == 0
        assert "trace  [on ]" in capsys.readouterr().out
        assert get_manager().should_log("trace")

    def test_project_config_applies(self, cli_env, capsys):
        (cli_env / ".chanlog.json").write_text(json.dumps({
            "channels": {"trace": True},
            "descriptions": {"gestures": "Gesture events"},
        }))
        assert main(["channels"]) == 0
        out = capsys.readouterr().out
        assert "trace     [on ]" in out
        assert "gestures  [off]  Gesture events" in out

    def test_cli_overrides_project_config(self, cli_env, capsys):
        (cli_env / ".chanlog.json").write_text('{"channels": {"trace": true}}')
        assert main(["--disable", "trace", "channels"]) == 0
        assert "trace  [off]" in capsys.readouterr().out

    def test_pending_state_warned(self, cli_env, capsys):
        assert main(["-e", "gestures", "channels"]) == 0
        assert "unregistered channel(s): gestures" in capsys.readouterr().out

    def test_save_writes_project_config(self, cli_env, capsys):
        assert main(["-e", "trace", "--disable", "http", "channels", "--save"]) == 0
        saved = json.loads((cli_env / ".chanlog.json").read_text())
        assert saved == {"channels": {"trace": True, "http": False}}
        assert "[OK] Saved 2 channel state(s)" in capsys.readouterr().out

    def test_save_without_states(self, cli_env, capsys):
        assert main(["channels", "--save"]) == 0
        assert "Nothing to save" in capsys.readouterr().out
        assert not (cli_env / ".chanlog.json").exists()


# ===================================================================
# ext
# ===================================================================


class TestExtCommand:

    def test_logging_channels(self, cli_env, capsys):
        assert main(["ext", "loggingChannels"]) == 0
        result = json.loads(capsys.readouterr().out)["result"]
        assert result["method"] == "ext.chanlog.loggingChannels"
        assert result["value"]["trace"]["enabled"] == "false"

    def test_enable(self, cli_env, capsys):
        assert main(["ext", "enable", "channel=trace", "enable=true"]) == 0
        assert get_manager().should_log("trace")

    def test_unknown_method_returns_1(self, cli_env, capsys):
        assert main(["ext", "nope"]) == 1
        error = json.loads(capsys.readouterr().out)["error"]
        assert error["code"] == -32601

    def test_bad_parameter_returns_2(self, cli_env):
        assert main(["ext", "enable", "channel"]) == 2


# ===================================================================
# fetch
# ===================================================================


class TestFetchCommand:

    def test_plain_fetch(self, cli_env, mock_http, transport, capsys):
        assert main(["fetch", URL]) == 0
        captured = capsys.readouterr()
        assert "[OK] 200 OK" in captured.out
        assert captured.err == ""
        assert transport.seen[0].method == "GET"

    def test_method_headers_and_body(self, cli_env, mock_http, transport, capsys):
        assert main(["fetch", "-X", "post", "-H", "X-Test: 1", "-d", "hello",
                     "--body", URL]) == 0
        sent = transport.seen[0]
        assert sent.method == "POST"
        assert sent.headers["x-test"] == "1"
        assert "hello" in capsys.readouterr().out

    def test_http_channel_logs_to_console(self, cli_env, mock_http, capsys):
        assert main(["--enable", "http", "fetch", URL]) == 0
        err = capsys.readouterr().err
        assert f"[http] #1 • GET • {URL} open" in err
        assert f"[http] #1 • GET • {URL} request ready" in err
        assert f"[http] #1 • GET • {URL} 200 OK" in err

    def test_error_status_returns_1(self, cli_env, monkeypatch):
        def not_found(request):
            return httpx.Response(404)

        monkeypatch.setattr(
            http_overrides_module, "HttpClient",
            lambda ctx=None: HttpClient(ctx, transport=httpx.MockTransport(not_found)))
        assert main(["fetch", URL]) == 1

    def test_bad_header_returns_2(self, cli_env, mock_http, capsys):
        assert main(["fetch", "-H", "no-colon", URL]) == 2


class TestEntryPoints:
    """Test the installed console script via subprocess."""

    def test_chanlog_version(self):
        """'chanlog --version' should print version and exit 0."""
        result = subprocess.run(
            ["chanlog", "--version"],
            capture_output=True, text=True, timeout=10,
        )
        assert result.returncode == 0
        assert "chanlog" in result.stdout

    def test_chanlog_help(self):
        """'chanlog --help' should list subcommands."""
        result = subprocess.run(
            ["chanlog", "--help"],
            capture_output=True, text=True, timeout=10,
        )
        assert result.returncode == 0
        assert "channels" in result.stdout
