"""
Tests for the interactive CLI.
"""

import json

import pytest

import aura.configs as configs
from aura.cli import MirrorCLI, main


@pytest.fixture
def cli(session):
    return MirrorCLI(session)


class TestMirrorCLI:
    """Tests for slash commands and chat input."""

    def test_vector_and_spawn(self, cli, capsys):
        cli.handle_command("/vector 200 0 -5")
        cli.handle_command("/spawn")
        out = capsys.readouterr().out

        assert "(100.0, 0.0, -5.0)" in out
        assert len(cli.session.engine.registry) == 1

    def test_vector_usage(self, cli, capsys):
        cli.handle_command("/vector 1 2")
        assert "Usage" in capsys.readouterr().out

    def test_scrub_seconds_ago(self, cli, clock):
        clock.advance(60_000)
        cli.session.tick()
        cli.handle_command("/scrub 30")

        state = cli.session.timeline_state
        assert not state.is_live
        assert state.cursor_time == state.max_observed_time - 30_000

    def test_rewind_and_live(self, cli):
        cli.handle_command("/rewind")
        assert not cli.session.timeline_state.is_live
        cli.handle_command("/live")
        assert cli.session.timeline_state.is_live

    def test_chat_turn_output(self, cli, capsys):
        cli.handle_input("hello, one bit please")
        out = capsys.readouterr().out

        assert "echo: hello, one bit please" in out
        assert "[EMPATHIC]" in out
        assert "+1 HyperBit" in out

    def test_unknown_command(self, cli, capsys):
        cli.handle_command("/warp")
        assert "Unknown command" in capsys.readouterr().out

    def test_quit_closes_session(self, cli):
        cli.handle_command("/quit")
        assert not cli.running
        assert cli.session.state.value == "closed"


class TestMain:
    """Tests for the entry point."""

    def test_status_prints_snapshot(self, monkeypatch, capsys):
        monkeypatch.setattr(configs, "_config_search_paths", [])
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)

        main(["--memory", "--status"])

        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["timeline"]["mode"] == "live"
        assert snapshot["message_count"] == 1

    def test_missing_config_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["--config", str(tmp_path / "absent.yaml"), "--status"])
