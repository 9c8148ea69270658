"""Tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest  # type: ignore

from cardharvest import cli
from cardharvest.config import ENV_VARS
from cardharvest.schema import STATUS_ABORTED, STATUS_COMPLETED, HarvestReport, ItemRecord
from cardharvest.store import CheckpointStore, DatasetStore

from fakes import DETAIL_TEMPLATE, FakeRenderer, detail_html


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class StubRunner:
    def __init__(self, status: str, checkpoint: CheckpointStore) -> None:
        self.status = status
        self.checkpoint = checkpoint

    async def run(self) -> HarvestReport:
        return HarvestReport(status=self.status, last_completed_page=1, error="boom")


@pytest.mark.parametrize("status, code", [(STATUS_COMPLETED, 0), (STATUS_ABORTED, 2)])
def test_run_exit_codes(tmp_path: Path, monkeypatch, status: str, code: int) -> None:
    checkpoint = CheckpointStore(tmp_path / "checkpoint.txt")
    monkeypatch.setattr(cli, "build_runner", lambda config: StubRunner(status, checkpoint))
    assert cli.main(["--data-dir", str(tmp_path), "run"]) == code


def test_run_restart_clears_checkpoint(tmp_path: Path, monkeypatch) -> None:
    checkpoint = CheckpointStore(tmp_path / "checkpoint.txt")
    checkpoint.write(7)
    monkeypatch.setattr(cli, "build_runner", lambda config: StubRunner(STATUS_COMPLETED, checkpoint))
    assert cli.main(["--data-dir", str(tmp_path), "run", "--restart"]) == 0
    assert checkpoint.read() == 0


def test_bad_config_exits_with_failure(tmp_path: Path) -> None:
    assert cli.main(["--config", str(tmp_path / "missing.yaml"), "status"]) == 1


def test_status(tmp_path: Path, capsys) -> None:
    CheckpointStore(tmp_path / "checkpoint.txt").write(2)
    dataset = DatasetStore(tmp_path / "cards_by_tier.json")
    dataset.append(ItemRecord(id="1", tier="S"))
    dataset.append(ItemRecord(id="2", tier="S"))
    dataset.append(ItemRecord(id="3", tier="A"))
    assert cli.main(["--data-dir", str(tmp_path), "status"]) == 0
    out = capsys.readouterr().out
    assert "Checkpoint: page 2" in out
    assert "Cards stored: 3" in out
    assert "Tier S: 2" in out


def test_resolve_prints_records(monkeypatch, capsys) -> None:
    monkeypatch.setenv("DETAIL_URL_TEMPLATE", DETAIL_TEMPLATE)
    renderer = FakeRenderer({DETAIL_TEMPLATE.format(card_id="5"): detail_html(name="Rem", tier="S")})
    monkeypatch.setattr(cli, "build_renderer", lambda config: renderer)
    assert cli.main(["resolve", "5", "6"]) == 1
    printed = json.loads(capsys.readouterr().out)
    assert printed[0]["name"] == "Rem"
    assert printed[1] is None
    assert renderer.started == renderer.stopped == 1
