"""studydeck CLI: review, status, session and deck maintenance commands."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from studydeck.application.config import AppConfig, resolve_config
from studydeck.domain.review.errors import SchedulingError
from studydeck.domain.review.models import (
    CardMemoryState,
    QualityRating,
    SessionMode,
    require_instant,
)
from studydeck.infrastructure.deck_file import DeckFileError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studydeck: spaced-repetition scheduling for flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage studydeck configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str, code: int = 1) -> None:
    typer.secho(message, fg="red", err=True)
    raise typer.Exit(code)


def _parse_instant(value: str, name: str) -> datetime:
    try:
        return require_instant(datetime.fromisoformat(value), name)
    except ValueError as e:
        _fail(f"Invalid {name}: {e}", code=2)


def _parse_now(value: str | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    return _parse_instant(value, "--now")


def _parse_quality(value: str) -> QualityRating:
    try:
        return QualityRating.parse(value)
    except SchedulingError as e:
        _fail(str(e), code=2)


def _deck_path(config: AppConfig, path: Path | None) -> Path:
    if path is not None:
        return path
    if config.deck_file is None:
        _fail("No deck file given and 'deck_file' is not configured.", code=2)
    return config.deck_file


def _config(ctx: typer.Context) -> AppConfig:
    try:
        return resolve_config({"verbose": ctx.obj.get("verbose") if ctx.obj else None})
    except ValueError as e:
        _fail(f"Invalid configuration: {e}")


def _format_state(state: CardMemoryState) -> str:
    return (
        f"interval={state.interval}d ease={state.ease_factor:.2f} "
        f"reps={state.repetitions} next={state.next_review.isoformat()}"
    )


DeckArg = Annotated[
    Path | None,
    typer.Argument(help="Path to a YAML deck file. Defaults to 'deck_file' in config."),
]
NowOpt = Annotated[
    str | None, typer.Option("--now", help="ISO-8601 instant with offset. Defaults to now.")
]
OffsetOpt = Annotated[
    int,
    typer.Option(
        "--offset",
        help="Client timezone offset in minutes, browser convention (UTC-5 = 300).",
    ),
]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for studydeck."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.getLogger().setLevel(_LOG_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="ID of the card that was reviewed.")],
    quality: Annotated[
        str, typer.Argument(help="forgot, struggled, 'got it', 'too easy' or 0/3/4/5.")
    ],
    deck: DeckArg = None,
    now: NowOpt = None,
    offset: OffsetOpt = 0,
    interval: Annotated[
        int | None, typer.Option(help="Current interval in days. Reviews this state, not a deck.")
    ] = None,
    ease: Annotated[float | None, typer.Option(help="Current ease factor.")] = None,
    reps: Annotated[int | None, typer.Option(help="Current successful repetitions.")] = None,
    next_review: Annotated[
        str | None, typer.Option("--next-review", help="ISO-8601 instant the card is due.")
    ] = None,
):
    """
    [bold green]Review[/bold green] one card and save its new schedule.

    With --interval, --ease, --reps or --next-review the rating is applied to
    that state instead, and nothing is written.
    """
    from studydeck.application.review.classifier import classify
    from studydeck.application.review.day_boundary import due_label
    from studydeck.application.review.scheduler import ReviewScheduler
    from studydeck.infrastructure.deck_file import load_deck, save_deck

    config = _config(ctx)
    from_options = any(v is not None for v in (interval, ease, reps, next_review))
    if from_options and deck is not None:
        _fail("Give either a deck file or state options, not both.", code=2)
    path = None if from_options else _deck_path(config, deck)
    rating = _parse_quality(quality)
    instant = _parse_now(now)
    due_at = instant if next_review is None else _parse_instant(next_review, "--next-review")
    scheduler = ReviewScheduler(config.scheduler_settings())

    try:
        if path is None:
            previous = CardMemoryState(
                interval=0 if interval is None else interval,
                ease_factor=config.initial_ease if ease is None else ease,
                repetitions=0 if reps is None else reps,
                next_review=due_at,
            )
            state = scheduler.apply(previous, rating, instant)
        else:
            snapshot = load_deck(path)
            card = snapshot.find(card_id)
            if card is None:
                _fail(f"Card not found: {card_id}")
            state = card.state = scheduler.apply(card.state, rating, instant)
        label = due_label(state.next_review, instant, offset)
        if path is not None:
            save_deck(path, snapshot)
    except (DeckFileError, SchedulingError) as e:
        _fail(str(e))

    status = classify(state, instant, config.mastery_threshold_days)
    typer.echo(f"{card_id}: {rating.label} -> {_format_state(state)}")
    typer.secho(f"Status: {status.label}  Next review: {label}", fg="green")
    typer.echo(f"XP earned: {config.review_xp}")


@app.command()
def status(
    ctx: typer.Context,
    deck: DeckArg = None,
    now: NowOpt = None,
    offset: OffsetOpt = 0,
    as_json: Annotated[bool, typer.Option("--json", help="Output JSON.")] = False,
):
    """Show every card's mastery status and the deck totals."""
    from studydeck.application.review.classifier import calculate_deck_stats, classify
    from studydeck.application.review.day_boundary import count_due_within, due_label
    from studydeck.infrastructure.deck_file import load_deck

    config = _config(ctx)
    instant = _parse_now(now)
    try:
        snapshot = load_deck(_deck_path(config, deck))
        states = [card.state for card in snapshot.cards]
        stats = calculate_deck_stats(states, instant, config.mastery_threshold_days)
        rows = [
            {
                "id": card.id,
                "front": card.front,
                "status": classify(card.state, instant, config.mastery_threshold_days).value,
                "next_review": due_label(card.state.next_review, instant, offset),
            }
            for card in snapshot.cards
        ]
        due_today = count_due_within(states, instant, offset, days=0)
        due_week = count_due_within(states, instant, offset, days=6)
    except (DeckFileError, SchedulingError) as e:
        _fail(str(e))

    if as_json:
        summary = {
            "deck": snapshot.name,
            "cards": rows,
            "stats": vars(stats),
            "due_today": due_today,
            "due_this_week": due_week,
        }
        typer.echo(json.dumps(summary, indent=2))
        return

    typer.secho(f"{snapshot.name}", bold=True)
    for row in rows:
        typer.echo(f"  {row['id']:<32} {row['status']:<10} {row['next_review']:<10} {row['front']}")
    typer.echo(
        f"Total {stats.total} | due {stats.due} | learning {stats.learning} | "
        f"reviewing {stats.reviewing} | mastered {stats.mastered} "
        f"({stats.mastery_percentage}%)"
    )
    typer.echo(f"Due today: {due_today}  Due this week: {due_week}")


@app.command()
def session(
    ctx: typer.Context,
    deck: DeckArg = None,
    mode: Annotated[SessionMode, typer.Option(help="due: only due cards; all: due first.")] = (
        SessionMode.DUE
    ),
    limit: Annotated[
        int | None, typer.Option(help="Maximum cards. Defaults to 'cards_per_session'.")
    ] = None,
    now: NowOpt = None,
):
    """List the card IDs for a study session, in study order."""
    from studydeck.application.review.session import remaining_due, select_for_session
    from studydeck.infrastructure.deck_file import load_deck

    config = _config(ctx)
    instant = _parse_now(now)
    try:
        entries = load_deck(_deck_path(config, deck)).entries()
    except DeckFileError as e:
        _fail(str(e))

    size = config.cards_per_session if limit is None else limit
    queue = select_for_session(entries, instant, mode, size, config.mastery_threshold_days)
    if not queue:
        typer.secho("Nothing to study.", fg="yellow")
        return
    for card_id in queue:
        typer.echo(card_id)
    typer.echo(f"Remaining due: {remaining_due(entries, instant)}", err=True)


@app.command()
def add(
    ctx: typer.Context,
    front: Annotated[str, typer.Option(help="Front (prompt) text.")],
    back: Annotated[str, typer.Option(help="Back (answer) text.")],
    deck: DeckArg = None,
    card_id: Annotated[str | None, typer.Option(help="Explicit card ID.")] = None,
    name: Annotated[str | None, typer.Option(help="Deck name when creating a new file.")] = None,
    now: NowOpt = None,
):
    """Add a new card, due immediately, to a deck file (created if missing)."""
    from studydeck.infrastructure.deck_file import Deck, DeckCard, load_deck, new_card_id, save_deck

    config = _config(ctx)
    path = _deck_path(config, deck)
    instant = _parse_now(now)
    try:
        snapshot = load_deck(path) if path.exists() else Deck(name=name or path.stem)
    except DeckFileError as e:
        _fail(str(e))

    new_id = card_id or new_card_id()
    if snapshot.find(new_id) is not None:
        _fail(f"Card already exists: {new_id}")

    state = CardMemoryState.initial(instant, config.initial_ease)
    snapshot.cards.append(DeckCard(id=new_id, state=state, front=front, back=back))
    save_deck(path, snapshot)
    typer.secho(f"Added {new_id}", fg="green")


@app.command()
def simulate(
    ctx: typer.Context,
    ratings: Annotated[list[str], typer.Argument(help="Ratings applied in order.")],
    start: NowOpt = None,
):
    """Replay ratings on a fresh card, reviewing each time it comes due."""
    from studydeck.application.review.classifier import classify
    from studydeck.application.review.scheduler import ReviewScheduler

    config = _config(ctx)
    instant = _parse_now(start)
    scheduler = ReviewScheduler(config.scheduler_settings())
    state = CardMemoryState.initial(instant, config.initial_ease)

    for i, raw in enumerate(ratings, start=1):
        rating = _parse_quality(raw)
        instant = max(instant, state.next_review)
        state = scheduler.apply(state, rating, instant)
        status = classify(state, instant, config.mastery_threshold_days)
        typer.echo(f"{i:>3}. {rating.label:<10} {_format_state(state)} [{status.value}]")


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print the resolved configuration as JSON."""
    config = _config(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
