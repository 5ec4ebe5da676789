import logging

import pytest

from phplite_lsp.config import ServerOptions, flag_from_env, level_from_env


@pytest.mark.parametrize(
    "raw,expected",
    [("1", True), ("true", True), (" Yes ", True), ("on", True), ("0", False), ("off", False), ("", False)],
)
def test_flag_from_env(raw, expected):
    assert flag_from_env("X", environ={"X": raw}) is expected


def test_flag_default_when_unset():
    assert flag_from_env("X", environ={}) is False
    assert flag_from_env("X", default=True, environ={}) is True


def test_level_from_env():
    assert level_from_env("L", environ={"L": " debug "}) == "DEBUG"
    assert level_from_env("L", environ={"L": "  "}) == "INFO"


def test_options_from_env():
    options = ServerOptions.from_env({"PHPLITE_LS_DEBUG": "1", "PHPLITE_LS_LOG_LEVEL": "warning"})
    assert options == ServerOptions(debug=True, log_level="WARNING")
    assert options.logging_level == logging.WARNING


def test_options_defaults():
    options = ServerOptions.from_env({})
    assert not options.debug
    assert options.logging_level == logging.INFO


def test_overrides_keep_unset_values():
    options = ServerOptions(debug=True, log_level="ERROR")
    assert options.with_overrides(log_level="debug") == ServerOptions(debug=True, log_level="DEBUG")
    assert options.with_overrides(debug=False).log_level == "ERROR"


def test_unknown_level_falls_back_to_info():
    assert ServerOptions(log_level="LOUD").logging_level == logging.INFO
