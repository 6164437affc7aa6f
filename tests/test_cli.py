"""Tests for CLI commands."""

from pathlib import Path

import pytest

from grok.__main__ import build_parser, run
from grokdb.config import settings


@pytest.fixture
def db_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    return url


def test_next_requires_a_container() -> None:
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["next"])


def test_grade_outcome_choices() -> None:
    args = build_parser().parse_args(["grade", "3", "fail", "--deck", "1"])
    assert args.card == 3
    assert args.outcome == "fail"
    assert args.deck == 1


@pytest.mark.asyncio
async def test_review_flow(db_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    parser = build_parser()
    await run(parser.parse_args(["init"]))
    await run(parser.parse_args(["deck", "Spanish"]))
    await run(parser.parse_args(["deck", "Verbs", "--parent", "1"]))
    await run(parser.parse_args(["card", "2", "ser", "--front", "ser", "--back", "to be"]))
    capsys.readouterr()

    await run(parser.parse_args(["next", "--deck", "1"]))
    assert "[1] ser" in capsys.readouterr().out

    await run(parser.parse_args(["grade", "1", "success", "--deck", "1"]))
    assert "1 success / 0 fail over 1 review(s)" in capsys.readouterr().out

    await run(parser.parse_args(["ancestors", "2"]))
    assert "Spanish" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_errors_are_reported(db_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    await run(build_parser().parse_args(["ancestors", "42"]))
    assert "Error: Deck 42 does not exist" in capsys.readouterr().out
