"""mneme CLI: quiz loop, queue inspection, and configuration."""

import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from mneme.application.config import AppConfig, resolve_config
from mneme.application.factory import create_preferences, create_queue_manager, get_store
from mneme.application.study_session import Question, StudySession
from mneme.consts import VERSION
from mneme.domain.models import LEARNING_MODES
from mneme.infrastructure.adapters.word_file import FileWordSource, WordSourceError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mneme: adaptive vocabulary quiz in your terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mneme configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


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
    ] = 0,
):
    """Global settings for mneme."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 1:
        logging.getLogger("mneme").setLevel(logging.DEBUG)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    try:
        return resolve_config(overrides)
    except ValidationError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red")
        raise typer.Exit(1) from e


def _ask(question: Question) -> int | None:
    """Prompt until a valid option number is typed. None means quit."""
    while True:
        raw = typer.prompt(f"Answer [1-{len(question.options)}, q to quit]").strip().lower()
        if raw in ("q", "quit"):
            return None
        if raw.isdigit() and 1 <= int(raw) <= len(question.options):
            return int(raw) - 1
        typer.secho("Please type an option number.", fg="yellow")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def study(
    words_file: Annotated[
        Path, typer.Argument(help="YAML or JSON word list.", exists=True, dir_okay=False)
    ],
    mode: Annotated[
        str | None, typer.Option(help="Quiz direction: word-to-meaning or meaning-to-word.")
    ] = None,
    batch_size: Annotated[int | None, typer.Option(help="Active words per batch.")] = None,
    target: Annotated[
        int | None, typer.Option(help="Stop after mastering this many words.")
    ] = None,
):
    """[bold green]Study[/bold green] a word list until the mastery target is reached."""
    if mode is not None and mode not in LEARNING_MODES:
        typer.secho(f"Unknown mode '{mode}'. Use one of: {', '.join(LEARNING_MODES)}", fg="red")
        raise typer.Exit(1)

    config = _resolve_with_overrides(batch_size=batch_size, target_mastery_count=target)

    try:
        source = FileWordSource(
            words_file, batch_size=batch_size, default_batch_size=config.batch_size
        )
    except WordSourceError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from e

    store = get_store(config)
    queue = create_queue_manager(config, store)
    preferences = create_preferences(config, store)
    if mode is not None:
        preferences.set_mode(mode)  # type: ignore[arg-type]

    session = StudySession(
        queue, source, preferences, target_mastery_count=config.target_mastery_count
    )
    session_id = session.start()
    typer.echo(f"{'Resumed' if session.resumed else 'Started'} session {session_id}")

    completed = True
    while True:
        question = session.next_question()
        if question is None:
            break

        typer.echo("")
        typer.secho(question.prompt, bold=True)
        for i, option in enumerate(question.options, start=1):
            typer.echo(f"  {i}. {option}")

        shown_at = time.monotonic()
        picked = _ask(question)
        if picked is None:
            completed = False
            break

        response_ms = (time.monotonic() - shown_at) * 1000
        outcome = session.answer(question, question.options[picked], response_ms)
        if outcome.correct:
            typer.secho("Correct!", fg="green")
        else:
            typer.secho(f"Wrong. Answer: {outcome.correct_answer}", fg="red")
        if outcome.mastered:
            typer.secho(f"Mastered '{question.entry.word.text}'", fg="cyan")
        if outcome.finished:
            break

    summary = session.summary()
    typer.echo("")
    typer.echo(
        f"Questions: {summary.total_questions}  Correct: {summary.correct_answers}"
        f"  Mastered: {summary.mastered_count}"
        + (f"/{summary.target_mastery_count}" if summary.target_mastery_count else "")
    )
    typer.echo(f"Accuracy: {summary.metrics.overall_accuracy:.0%}")

    if completed:
        session.finish()
    else:
        typer.echo("Progress saved. Run the same command again to resume.")


@app.command()
def status(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the persisted learning queue."""
    config = _resolve_with_overrides()
    store = get_store(config)
    queue = create_queue_manager(config, store)
    preferences = create_preferences(config, store)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "session_id": preferences.session_id,
                    "mode": preferences.mode,
                    "batch_size": queue.batch_size,
                    "active": [asdict(q) for q in queue.active_words()],
                    "mastered": queue.get_mastered_word_ids(),
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    typer.echo(f"Session: {preferences.session_id or '-'}  Mode: {preferences.mode}")
    typer.echo(
        f"Active: {queue.active_count}  Mastered: {queue.mastered_count}"
        f"  Batch size: {queue.batch_size}"
    )
    for entry in queue.active_words():
        marker = typer.style("!", fg="red") if entry.error_count else " "
        typer.echo(
            f" {marker} {entry.word.text:<20} correct={entry.correct_count}"
            f" errors={entry.error_count} priority={entry.priority}"
        )


@app.command()
def reset(
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Drop the persisted queue and session."""
    if not force and not typer.confirm("Discard the current learning queue?"):
        raise typer.Abort()

    config = _resolve_with_overrides()
    store = get_store(config)
    create_queue_manager(config, store).reset()
    create_preferences(config, store).clear_session()
    typer.secho("Learning queue cleared.", fg="green")


@app.command()
def mode(
    value: Annotated[
        str | None,
        typer.Argument(help="word-to-meaning, meaning-to-word, or toggle. Omit to show."),
    ] = None,
):
    """Show or change the quiz direction."""
    config = _resolve_with_overrides()
    preferences = create_preferences(config, get_store(config))

    if value is None:
        typer.echo(preferences.mode)
        return

    if value == "toggle":
        preferences.toggle_mode()
    elif value in LEARNING_MODES:
        preferences.set_mode(value)  # type: ignore[arg-type]
    else:
        typer.secho(f"Unknown mode '{value}'.", fg="red")
        raise typer.Exit(1)
    typer.echo(preferences.mode)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@app.command()
def version():
    """Print the installed version."""
    typer.echo(VERSION)
