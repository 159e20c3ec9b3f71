from dataclasses import replace

import pytest

from browser_automation import cli
from testsuites.fakes import MAPS_ROOT


@pytest.fixture
def cli_settings(settings):
    return replace(settings, element_maps_dir=MAPS_ROOT / "element-maps")


@pytest.fixture
def run_cli(monkeypatch, cli_settings):
    monkeypatch.setattr(cli, "init_logger", lambda level=None: None)
    monkeypatch.setattr(cli.Settings, "from_config", classmethod(lambda cls, config=None: cli_settings))
    return cli.main


def test_search_prints_ranked_paths(run_cli, capsys):
    assert run_cli(["search", "saveButton", "--limit", "1"]) == 0

    out = capsys.readouterr().out
    assert "bio.form.saveButton" in out
    assert "navigation.tabs.bio" not in out


def test_search_without_matches(run_cli, capsys):
    assert run_cli(["search", "zzzzqqqq", "--threshold", "0"]) == 1
    assert "No elements match" in capsys.readouterr().out


def test_search_unknown_app_fails(run_cli):
    assert run_cli(["search", "tab", "--app", "unknown-app"]) == 1


def test_sessions_and_cleanup(run_cli, cli_settings, capsys):
    assert run_cli(["sessions"]) == 0
    assert "No screenshot sessions" in capsys.readouterr().out

    (cli_settings.screenshots_dir / "2025-11-17T12-00-00-000Z").mkdir(parents=True)
    assert run_cli(["sessions"]) == 0
    assert "2025-11-17T12-00-00-000Z    0 screenshot(s)  (no manifest)" in capsys.readouterr().out

    assert run_cli(["cleanup", "--days", "1"]) == 0
    assert "Removed 0 session(s) older than 1 day(s)" in capsys.readouterr().out


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
