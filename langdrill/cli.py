"""
langdrill: terminal drills for language learners.

Commands:
- langdrill study        - Run a drill session
- langdrill status       - Show ability, due items and streak
- langdrill enable LANG  - Enable practice (switching language)
- langdrill disable      - Disable practice
- langdrill languages    - List supported languages
- langdrill suspend ID   - Stop showing an item
- langdrill unsuspend ID - Show a suspended item again
"""
from __future__ import annotations

import asyncio
import sys
import time
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .app import LearningController
from .config import get_settings
from .content.languages import get_language_label, list_languages
from .core.errors import ConfigurationError
from .core.models import GradeResult, MultipleChoiceQuestion, Question


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="langdrill",
    help="langdrill: adaptive vocabulary and grammar drills",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
    "question_type": {
        "multiple_choice": "green",
        "type_answer": "blue",
        "cloze": "magenta",
        "article_choice": "yellow",
        "reorder": "red",
    },
}


def style_question_type(question_type: str) -> str:
    """Get styled question type string."""
    color = STYLES["question_type"].get(question_type, "white")
    return f"[{color}]{question_type}[/{color}]"


# =============================================================================
# Display Helpers
# =============================================================================


def display_question(question: Question, index: int, lang: str) -> None:
    """Show one question in a panel."""
    header = f"#{index}  |  {style_question_type(question.type.value)}  |  {get_language_label(lang)}"
    content = question.prompt
    if isinstance(question, MultipleChoiceQuestion):
        content += "\n\n"
        for i, option in enumerate(question.options):
            content += f"  {chr(65 + i)}. {option}\n"

    console.print(Panel(
        content,
        title=header,
        title_align="left",
        border_style="cyan",
        padding=(1, 2),
    ))


def display_result(result: GradeResult) -> None:
    """Show grading feedback."""
    style = STYLES["correct"] if result.correct else STYLES["incorrect"]
    icon = "[green]✓[/green]" if result.correct else "[red]✗[/red]"
    console.print(Panel(
        f"{icon} {result.explanation}\n\n[dim]Quality {result.quality}/5[/dim]",
        border_style=style,
        padding=(1, 2),
    ))


def _open_controller() -> LearningController:
    try:
        return LearningController(get_settings())
    except ConfigurationError as e:
        console.print(f"[{STYLES['incorrect']}]{e}[/]")
        raise typer.Exit(1) from e


def _close(controller: LearningController) -> None:
    asyncio.run(controller.close())


def _switch(controller: LearningController, lang: Optional[str]) -> None:
    if not lang:
        return
    try:
        controller.switch_language(controller.resolve(lang))
    except ConfigurationError as e:
        console.print(f"[{STYLES['incorrect']}]{e}[/]")
        _close(controller)
        raise typer.Exit(1) from e


# =============================================================================
# Commands
# =============================================================================


@app.command()
def study(
    lang: Optional[str] = typer.Option(None, "--lang", "-l", help="Language to drill"),
    limit: int = typer.Option(20, "--limit", "-n", help="Questions per session"),
) -> None:
    """Run a drill session. Type 'h' for a hint, 'q' to quit."""
    controller = _open_controller()
    _switch(controller, lang)
    asyncio.run(_study_session(controller, limit))


async def _study_session(controller: LearningController, limit: int) -> None:
    engine = controller.engine
    answered = 0
    correct = 0
    try:
        for index in range(1, limit + 1):
            try:
                question = engine.next_question()
            except ConfigurationError as e:
                console.print(f"[{STYLES['incorrect']}]{e}[/]")
                break

            display_question(question, index, controller.language.code)
            hint_used = False
            started = time.monotonic()
            answer = Prompt.ask("Answer [dim](h = hint, q = quit)[/dim]").strip()
            while answer.lower() == "h":
                hint_used = True
                hint = engine.hint(question) or "No hint available."
                console.print(f"[{STYLES['info']}]Hint:[/] {hint}")
                answer = Prompt.ask("Answer").strip()
            if answer.lower() == "q":
                break

            latency_ms = (time.monotonic() - started) * 1000
            result = await engine.submit_answer(question, answer, latency_ms, hint_used)
            display_result(result)
            controller.store.poll()

            answered += 1
            correct += 1 if result.correct else 0
    finally:
        await controller.close()

    if answered:
        status = engine.get_status()
        console.print(Panel(
            f"[bold]Session Complete![/bold]\n\n"
            f"Answered: {answered}\n"
            f"Correct: {correct} ({correct / answered * 100:.0f}%)\n"
            f"Level: {status.ability.estimate}  |  Streak: {status.streak_days} day(s)",
            title="Summary",
            border_style="green",
        ))


@app.command()
def status(
    lang: Optional[str] = typer.Option(None, "--lang", "-l", help="Language to report on"),
) -> None:
    """Show ability, due items and streak."""
    controller = _open_controller()
    _switch(controller, lang)
    info = controller.engine.get_status()
    _close(controller)

    console.print(f"\n[bold cyan]{get_language_label(info.lang)}[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Enabled", "yes" if info.enabled else "no")
    table.add_row("Level", f"{info.ability.estimate} ({info.ability.score:.2f})")
    table.add_row("Confidence", f"{info.ability.confidence * 100:.0f}%")
    table.add_row("Due now", str(info.due_count))
    table.add_row("Not yet seen", str(info.new_count))
    table.add_row("New today", f"{info.new_today} / {info.daily_new_cards_target}")
    table.add_row("Streak", f"{info.streak_days} day(s)")
    console.print(table)

    if info.ability.subskills:
        skills = Table()
        skills.add_column("Skill")
        skills.add_column("Score")
        skills.add_column("Samples")
        for name, skill in sorted(info.ability.subskills.items()):
            skills.add_row(name, f"{skill.score:.2f}", str(skill.samples))
        console.print(skills)


@app.command()
def enable(lang: str = typer.Argument(..., help="Language code or name, e.g. nl or Dutch")) -> None:
    """Enable practice for a language."""
    controller = _open_controller()
    try:
        switched = controller.enable(lang)
    except ConfigurationError as e:
        console.print(f"[{STYLES['incorrect']}]{e}[/]")
        raise typer.Exit(1) from e
    finally:
        _close(controller)
    label = get_language_label(controller.language.code)
    suffix = " (switched)" if switched else ""
    console.print(f"[green]Practice enabled for {label}{suffix}[/green]")


@app.command()
def disable() -> None:
    """Disable practice for the active language."""
    controller = _open_controller()
    controller.set_enabled(False)
    _close(controller)
    console.print(f"[yellow]Practice disabled for {get_language_label(controller.language.code)}[/yellow]")


@app.command()
def languages() -> None:
    """List supported languages."""
    table = Table()
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("Aliases", style="dim")
    for language in list_languages():
        table.add_row(language.code, language.name, ", ".join(language.aliases))
    console.print(table)


@app.command()
def suspend(item_id: str = typer.Argument(..., help="Item id, e.g. nl-v-huis")) -> None:
    """Stop showing an item."""
    controller = _open_controller()
    changed = controller.engine.suspend(item_id)
    _close(controller)
    if changed:
        console.print(f"[green]Suspended {item_id}[/green]")
    else:
        console.print(f"[dim]{item_id} was already suspended[/dim]")


@app.command()
def unsuspend(item_id: str = typer.Argument(..., help="Item id")) -> None:
    """Show a suspended item again."""
    controller = _open_controller()
    changed = controller.engine.unsuspend(item_id)
    _close(controller)
    if changed:
        console.print(f"[green]Unsuspended {item_id}[/green]")
    else:
        console.print(f"[dim]{item_id} was not suspended[/dim]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(
            settings.log_file.expanduser(),
            level="DEBUG",
            rotation="1 MB",
            retention=3,
        )

    app()


if __name__ == "__main__":
    main()
