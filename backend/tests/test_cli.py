"""CLI tests."""

from __future__ import annotations

import json
from pathlib import Path

import requests
from typer.testing import CliRunner

from design_sync.cli.main import app

runner = CliRunner()


def _assets(tmp_path: Path) -> Path:
    return tmp_path / "superdesign" / "design_iterations"


def test_list_and_delete(tmp_path: Path) -> None:
    result = runner.invoke(app, ["list", "--workspace", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == []

    (_assets(tmp_path) / "a.html").write_text("a", encoding="utf-8")
    result = runner.invoke(app, ["delete", "a.html", "--workspace", str(tmp_path)])
    assert result.exit_code == 0
    assert "Successfully deleted a.html" in result.stdout

    result = runner.invoke(app, ["delete", "a.html", "--workspace", str(tmp_path)])
    assert result.exit_code == 1


def test_settings_update(tmp_path: Path) -> None:
    result = runner.invoke(app, ["settings", "--max-count", "7", "--disabled", "--workspace", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"maxAgeDays": 30, "maxCount": 7, "enabled": False}


def test_cleanup_dry_run(tmp_path: Path) -> None:
    result = runner.invoke(app, ["cleanup", "--dry-run", "--workspace", str(tmp_path)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["dry_run"] is True
    assert payload["deleted"] == []


def test_check_manifest(tmp_path: Path) -> None:
    runner.invoke(app, ["list", "--workspace", str(tmp_path)])
    (_assets(tmp_path) / "new.svg").write_text("<svg/>", encoding="utf-8")
    manifest = tmp_path / "manifest.json"
    manifest.write_text(json.dumps([]), encoding="utf-8")

    result = runner.invoke(app, ["check", str(manifest), "--workspace", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"hasChanges": True, "changes": [{"file": "new.svg", "type": "added"}]}

    manifest.write_text(json.dumps([{"name": "x"}]), encoding="utf-8")
    result = runner.invoke(app, ["check", str(manifest), "--workspace", str(tmp_path)])
    assert result.exit_code == 2


def test_health_unreachable(monkeypatch) -> None:
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", refuse)
    result = runner.invoke(app, ["health", "--host", "http://127.0.0.1:9"])
    assert result.exit_code == 1
