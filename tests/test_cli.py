"""Unit tests for the command-line interface."""

import json

import pytest

from autopilot.cli import build_parser, load_config, main
from autopilot.config import AutopilotConfig


def parse(*argv: str):
    return build_parser().parse_args(list(argv))


# =============================================================================
# Argument Parsing Tests
# =============================================================================


class TestParser:
    """Test subcommands and options."""

    def test_launch_defaults(self):
        args = parse("launch")
        assert args.command == "launch"
        assert args.target is None
        assert args.auto_throttle is None
        assert not args.simulate
        assert load_config(args) == AutopilotConfig()

    def test_launch_overrides(self):
        config = load_config(parse("launch", "--target", "100000", "--compass", "45", "--ag5"))

        assert config.target.target_apoapsis_altitude == 100000.0
        assert config.target.compass_heading == 45.0
        assert config.launch.action_group_5 is True

    def test_no_auto_throttle(self):
        config = load_config(parse("launch", "--no-auto-throttle"))
        assert config.launch.auto_throttle is False

    def test_execute_node_options(self):
        args = parse("execute-node", "--circularize-at", "pe", "--simulate")
        assert args.circularize_at == "pe"
        assert args.simulate

    def test_invalid_apsis(self):
        with pytest.raises(SystemExit):
            parse("execute-node", "--circularize-at", "node")

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse("--version")
        assert exc.value.code == 0
        assert "0.1.0" in capsys.readouterr().out


# =============================================================================
# Configuration File Tests
# =============================================================================


class TestConfigFile:
    """Test tuning files and command-line precedence."""

    @pytest.fixture
    def tuning(self, tmp_path):
        path = tmp_path / "tuning.json"
        path.write_text(json.dumps({
            "target": {"target_apoapsis_altitude": 120000.0},
            "launch": {"auto_throttle": False},
        }))
        return str(path)

    def test_file_values_used(self, tuning):
        config = load_config(parse("launch", "--config", tuning))
        assert config.target.target_apoapsis_altitude == 120000.0
        assert config.launch.auto_throttle is False

    def test_command_line_wins(self, tuning):
        config = load_config(parse("launch", "--config", tuning, "--target", "80000", "--auto-throttle"))
        assert config.target.target_apoapsis_altitude == 80000.0
        assert config.launch.auto_throttle is True


# =============================================================================
# Entry Point Tests
# =============================================================================


class TestMain:
    """Test exit codes."""

    def test_missing_config(self, tmp_path):
        assert main(["launch", "--config", str(tmp_path / "missing.json")]) == 1

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"staging": {"every_n_ticks": 0}}))
        assert main(["launch", "--simulate", "--config", str(path)]) == 1

    def test_execute_node_without_node(self):
        assert main(["execute-node", "--simulate"]) == 1
