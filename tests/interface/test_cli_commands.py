"""Tests for CLI commands: review, status, session, add, simulate and config."""

import json

import pytest
from typer.testing import CliRunner

from studydeck.infrastructure.deck_file import load_deck
from studydeck.interface.cli import app

runner = CliRunner()

NOW = "2026-03-02T09:30:00+00:00"

DECK_YAML = """\
deck: Biology 101
cards:
  - id: mito
    front: Mitochondria
    back: Powerhouse of the cell
    interval: 6
    ease_factor: 2.6
    repetitions: 2
    next_review: '2026-03-01T09:30:00+00:00'
  - id: ribo
    front: Ribosome
    back: Protein factory
    next_review: '2026-03-02T09:00:00+00:00'
  - id: nucleus
    front: Nucleus
    back: Holds the DNA
    interval: 30
    ease_factor: 2.5
    repetitions: 5
    next_review: '2026-03-20T09:30:00+00:00'
"""


@pytest.fixture
def deck_path(tmp_path):
    path = tmp_path / "bio.yaml"
    path.write_text(DECK_YAML)
    return path


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "studydeck" in result.stdout
    for command in ("review", "status", "session", "add", "simulate", "config"):
        assert command in result.stdout


def test_review_updates_deck_file(deck_path):
    result = runner.invoke(app, ["review", "mito", "got it", str(deck_path), "--now", NOW])

    assert result.exit_code == 0, result.output
    assert "Got it" in result.stdout
    assert "interval=16d" in result.stdout
    assert "Mastered" in result.stdout
    assert "XP earned: 1" in result.stdout

    card = load_deck(deck_path).find("mito")
    assert card.state.interval == 16
    assert card.state.repetitions == 3


def test_review_forgot_by_score(deck_path):
    result = runner.invoke(app, ["review", "nucleus", "0", str(deck_path), "--now", NOW])
    assert result.exit_code == 0, result.output
    card = load_deck(deck_path).find("nucleus")
    assert card.state.interval == 0
    assert card.state.ease_factor == 2.3


def test_review_rejects_invalid_quality(deck_path):
    before = deck_path.read_text()
    result = runner.invoke(app, ["review", "mito", "2", str(deck_path), "--now", NOW])
    assert result.exit_code == 2
    assert "Invalid quality" in result.output
    assert deck_path.read_text() == before


@pytest.mark.parametrize("quality", ["²", "٤"])
def test_review_rejects_non_ascii_digit_quality(deck_path, quality):
    before = deck_path.read_text()
    result = runner.invoke(app, ["review", "mito", quality, str(deck_path), "--now", NOW])
    assert result.exit_code == 2
    assert "Invalid quality" in result.output
    assert deck_path.read_text() == before


def test_review_state_from_options():
    result = runner.invoke(
        app,
        [
            "review", "mito", "got it",
            "--interval", "6",
            "--ease", "2.6",
            "--reps", "2",
            "--next-review", "2026-03-01T09:30:00+00:00",
            "--now", NOW,
        ],
    )
    assert result.exit_code == 0, result.output
    assert "interval=16d ease=2.60 reps=3" in result.stdout
    assert "Mastered" in result.stdout


def test_review_state_options_default_to_new_card():
    result = runner.invoke(app, ["review", "c1", "too easy", "--reps", "0", "--now", NOW])
    assert result.exit_code == 0, result.output
    assert "interval=1d ease=2.60 reps=1" in result.stdout
    assert "Next review: Tomorrow" in result.stdout


def test_review_state_options_ignore_configured_deck(deck_path, monkeypatch):
    monkeypatch.setenv("STUDYDECK_DECK_FILE", str(deck_path))
    before = deck_path.read_text()
    result = runner.invoke(app, ["review", "mito", "forgot", "--interval", "6", "--now", NOW])
    assert result.exit_code == 0, result.output
    assert "interval=0d ease=2.30 reps=0" in result.stdout
    assert deck_path.read_text() == before


def test_review_rejects_deck_and_state_options(deck_path):
    before = deck_path.read_text()
    result = runner.invoke(
        app, ["review", "mito", "4", str(deck_path), "--interval", "6", "--now", NOW]
    )
    assert result.exit_code == 2
    assert "not both" in result.output
    assert deck_path.read_text() == before


def test_review_rejects_naive_next_review():
    result = runner.invoke(
        app, ["review", "c1", "4", "--next-review", "2026-03-02T09:30:00", "--now", NOW]
    )
    assert result.exit_code == 2
    assert "--next-review" in result.output


def test_review_rejects_naive_now(deck_path):
    result = runner.invoke(
        app, ["review", "mito", "4", str(deck_path), "--now", "2026-03-02T09:30:00"]
    )
    assert result.exit_code == 2
    assert "timezone-aware" in result.output


def test_review_unknown_card(deck_path):
    result = runner.invoke(app, ["review", "ghost", "4", str(deck_path), "--now", NOW])
    assert result.exit_code == 1
    assert "Card not found: ghost" in result.output


def test_review_uses_configured_deck(deck_path, monkeypatch):
    monkeypatch.setenv("STUDYDECK_DECK_FILE", str(deck_path))
    result = runner.invoke(app, ["review", "ribo", "too easy", "--now", NOW])
    assert result.exit_code == 0, result.output
    assert load_deck(deck_path).find("ribo").state.ease_factor == 2.6


def test_review_without_deck_file():
    result = runner.invoke(app, ["review", "ribo", "4", "--now", NOW])
    assert result.exit_code == 2
    assert "deck_file" in result.output


def test_status_json(deck_path):
    result = runner.invoke(app, ["status", str(deck_path), "--now", NOW, "--json"])
    assert result.exit_code == 0, result.output

    data = json.loads(result.stdout)
    assert data["deck"] == "Biology 101"
    assert [row["status"] for row in data["cards"]] == ["due", "due", "mastered"]
    assert data["cards"][2]["next_review"] == "3 weeks"
    assert data["stats"]["total"] == 3
    assert data["stats"]["mastery_percentage"] == 33
    assert data["due_today"] == 2
    assert data["due_this_week"] == 2


def test_status_table(deck_path):
    result = runner.invoke(app, ["status", str(deck_path), "--now", NOW])
    assert result.exit_code == 0, result.output
    assert "Biology 101" in result.stdout
    assert "Mitochondria" in result.stdout
    assert "mastered 1 (33%)" in result.stdout


def test_status_missing_file(tmp_path):
    result = runner.invoke(app, ["status", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_session_due_and_all(deck_path):
    result = runner.invoke(app, ["session", str(deck_path), "--now", NOW])
    assert result.exit_code == 0, result.output
    assert result.stdout.split()[:2] == ["mito", "ribo"]
    assert "nucleus" not in result.stdout

    result = runner.invoke(app, ["session", str(deck_path), "--mode", "all", "--now", NOW])
    assert result.stdout.split()[:3] == ["mito", "ribo", "nucleus"]

    result = runner.invoke(app, ["session", str(deck_path), "--limit", "1", "--now", NOW])
    assert result.stdout.split()[0] == "mito"
    assert "ribo" not in result.stdout.split()


def test_session_nothing_due(deck_path):
    result = runner.invoke(
        app, ["session", str(deck_path), "--now", "2026-02-01T00:00:00+00:00"]
    )
    assert result.exit_code == 0
    assert "Nothing to study." in result.stdout


def test_add_creates_deck(tmp_path):
    path = tmp_path / "chem.yaml"
    result = runner.invoke(
        app,
        ["add", str(path), "--front", "H2O", "--back", "Water", "--card-id", "h2o", "--now", NOW],
    )
    assert result.exit_code == 0, result.output
    assert "Added h2o" in result.stdout

    deck = load_deck(path)
    assert deck.name == "chem"
    card = deck.find("h2o")
    assert card.front == "H2O"
    assert card.state.interval == 0
    assert card.state.ease_factor == 2.5

    result = runner.invoke(
        app, ["add", str(path), "--front", "x", "--back", "y", "--card-id", "h2o"]
    )
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_add_generates_id(deck_path):
    result = runner.invoke(app, ["add", str(deck_path), "--front", "Golgi", "--back", "Packaging"])
    assert result.exit_code == 0, result.output
    assert len(load_deck(deck_path).cards) == 4
    assert load_deck(deck_path).cards[-1].id.startswith("card_")


def test_simulate():
    result = runner.invoke(
        app, ["simulate", "got it", "too easy", "forgot", "got it", "--now", NOW]
    )
    assert result.exit_code == 0, result.output
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 4
    assert "interval=1d ease=2.50 reps=1" in lines[0]
    assert "interval=6d ease=2.60 reps=2" in lines[1]
    assert "interval=0d ease=2.40 reps=0" in lines[2]
    assert "[learning]" in lines[2]
    assert "interval=1d ease=2.40 reps=1" in lines[3]


def test_simulate_rejects_bad_rating():
    result = runner.invoke(app, ["simulate", "got it", "sort of"])
    assert result.exit_code == 2


def test_config_show(monkeypatch):
    monkeypatch.setenv("STUDYDECK_MAX_INTERVAL_DAYS", "120")
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["max_interval_days"] == 120
    assert data["ease_floor"] == 1.3
