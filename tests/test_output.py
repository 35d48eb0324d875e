"""Tests for chanlog.output — verbosity mapping and print helpers."""

import io

import pytest

from chanlog import output
from chanlog.levels import CRITICAL, DEBUG, ERROR, INFO, WARNING
from chanlog.output import (
    configure_console, level_for_verbosity, print_error, print_json, print_ok,
    print_warn,
)
from chanlog.sinks import ConsoleSink


@pytest.fixture(autouse=True)
def _restore_verbosity():
    yield
    output._verbosity = 0


class TestLevelForVerbosity:

    @pytest.mark.parametrize("verbosity,level", [
        (3, DEBUG), (1, DEBUG), (0, INFO), (-1, WARNING), (-2, ERROR),
        (-3, CRITICAL), (-4, None), (-9, None),
    ])
    def test_mapping(self, verbosity, level):
        assert level_for_verbosity(verbosity) == level


class TestConfigureConsole:

    def test_attaches_sink(self, manager):
        out = io.StringIO()
        sink = configure_console(manager, 1, file=out)
        assert isinstance(sink, ConsoleSink)
        assert sink in manager.listeners
        assert sink.min_level == DEBUG
        assert sink.show_levels is True

        manager.register_channel("c")
        manager.enable_logging("c")
        manager.log("c", "m", level=DEBUG)
        assert out.getvalue() == "[c] DEBUG: m\n"

    def test_silent_attaches_nothing(self, manager):
        before = manager.listeners
        assert configure_console(manager, -4) is None
        assert manager.listeners == before


class TestPrintHelpers:

    def test_ok_and_warn(self, manager, capsys):
        configure_console(manager, 0)
        print_ok("done")
        print_warn("careful")
        assert capsys.readouterr().out == "  [OK] done\n  [WARN] careful\n"

    def test_quiet_hides_ok(self, manager, capsys):
        configure_console(manager, -3)
        print_ok("done")
        print_error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "  ERROR: broken\n"

    def test_silent_hides_errors(self, manager, capsys):
        configure_console(manager, -4)
        print_error("broken")
        assert capsys.readouterr().err == ""

    def test_print_json(self, capsys):
        print_json({"b": 1, "a": [1]})
        assert capsys.readouterr().out == '{\n  "a": [\n    1\n  ],\n  "b": 1\n}\n'
