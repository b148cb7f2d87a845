"""CLI commands for the grade tracker.

Commands:
- init: Create the course with default years
- show: Print the course tree, grades and classification
- add-year / add-module / add-assessment: Grow the tree
- grade / complete: Record results
- target: Set or clear a course, year or module target
- edit-course / edit-year / edit-module / edit-assessment: Change fields in place
- remove-year / remove-module / remove-assessment / reset: Prune the tree
- serve: Run the course API

Entity ids may be abbreviated to any unique prefix (as printed by `show`).
"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from gradetrack.config.app_config import build_adapter, load_app_config
from gradetrack.core.aggregation import (
    TargetProgress,
    course_summary,
    module_grade,
    required_average,
    target_progress,
    year_credits,
    year_grade,
)
from gradetrack.core.classification import classify, color_for
from gradetrack.core.errors import (
    ConflictError,
    GradeTrackError,
    NotFoundError,
    StoreStateError,
    TransientIOError,
    ValidationError,
)
from gradetrack.core.models import (
    DEFAULT_CREDITS,
    AcademicYear,
    AssessmentUpdate,
    Course,
    CourseUpdate,
    Module,
    ModuleUpdate,
    YearUpdate,
)
from gradetrack.core.tree_store import CourseTreeStore

T = TypeVar("T")

app = typer.Typer(
    name="gradetrack",
    help="Track university module grades and degree classification.",
    no_args_is_help=True,
)

console = Console()

SHORT_ID = 8


# =============================================================================
# HELPERS
# =============================================================================


def format_percentage(value: float | None) -> str:
    """Render a percentage for display. Rounding happens only here."""
    if value is None:
        return "N/A"
    return f"{value:.1f}%"


def _short(entity_id: str) -> str:
    return entity_id[:SHORT_ID]


def _target_status(progress: TargetProgress) -> str:
    """Target with on-track state, or "" when no target is set."""
    if progress.target is None:
        return ""
    if progress.current is None:
        state = "[dim]no grades yet[/dim]"
    elif progress.on_track:
        state = "[green]on track[/green]"
    else:
        state = "[yellow]below[/yellow]"
    return f"{format_percentage(progress.target)} {state}"


def _target_cell(progress: TargetProgress) -> str:
    """Compact target column for the module table."""
    if progress.target is None:
        return ""
    if progress.current is None:
        mark = "[dim]·[/dim]"
    elif progress.on_track:
        mark = "[green]✓[/green]"
    else:
        mark = "[yellow]✗[/yellow]"
    return f"{format_percentage(progress.target)} {mark}"


def _provided(**options: Any) -> dict[str, Any]:
    """Drop options left at None so they stay unset in an update."""
    return {name: value for name, value in options.items() if value is not None}


def _resolve_id(kind: str, prefix: str, candidates: list[str]) -> str:
    """Resolve an id prefix to a full id."""
    if prefix in candidates:
        return prefix
    matches = [c for c in candidates if c.startswith(prefix)]
    if not matches:
        raise NotFoundError(kind, prefix)
    if len(matches) > 1:
        raise ValidationError(kind, f"id prefix '{prefix}' is ambiguous ({len(matches)} matches)")
    return matches[0]


def _locate_year(course: Course, prefix: str) -> AcademicYear:
    year_id = _resolve_id("year", prefix, [y.id for y in course.years])
    return course.find_year(year_id)


def _locate_module(course: Course, prefix: str) -> tuple[AcademicYear, Module]:
    owners = {m.id: y for y in course.years for m in y.modules}
    module_id = _resolve_id("module", prefix, list(owners))
    year = owners[module_id]
    return year, year.find_module(module_id)


def _locate_assessment(course: Course, prefix: str) -> tuple[str, str, str]:
    """Returns (year_id, module_id, assessment_id)."""
    owners = {
        a.id: (y.id, m.id)
        for y in course.years
        for m in y.modules
        for a in m.assessments
    }
    assessment_id = _resolve_id("assessment", prefix, list(owners))
    year_id, module_id = owners[assessment_id]
    return year_id, module_id, assessment_id


def _loaded_course(store: CourseTreeStore) -> Course:
    course = store.course
    if course is None:
        raise StoreStateError("No course yet. Run 'gradetrack init' first.")
    return course


def _run(action: Callable[[CourseTreeStore], Awaitable[T]]) -> T:
    """Load the store for the configured user and run one action on it.

    Errors are reported on the console and turned into exit code 1.
    """

    async def runner() -> T:
        config = load_app_config()
        store = CourseTreeStore(build_adapter(config), config.user_id)
        await store.load()
        return await action(store)

    try:
        return asyncio.run(runner())
    except ValidationError as e:
        console.print(f"[red]✗ Invalid {e.field}: {e}[/red]")
        raise typer.Exit(code=1)
    except ConflictError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        console.print("  Use 'gradetrack reset' to start over.")
        raise typer.Exit(code=1)
    except NotFoundError as e:
        console.print(f"[red]✗ {e.kind.capitalize()} '{e.entity_id}' not found[/red]")
        raise typer.Exit(code=1)
    except TransientIOError as e:
        console.print(f"[red]✗ Storage unavailable: {e}[/red]")
        console.print("  Nothing was changed. Try again.")
        raise typer.Exit(code=1)
    except GradeTrackError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


# =============================================================================
# COURSE
# =============================================================================


@app.command()
def init(
    institution: str = typer.Argument(..., help="University or college"),
    title: str = typer.Argument(..., help="Course title"),
    years: int = typer.Option(3, "--years", "-y", help="Number of academic years"),
    target: float | None = typer.Option(None, "--target", "-t", help="Target grade (0-100)"),
) -> None:
    """Create the course with default year weights."""

    async def action(store: CourseTreeStore) -> Course:
        return await store.create_course(institution, title, years, target)

    course = _run(action)

    console.print(f"[green]✓ Created {course.title} at {course.institution}[/green]")
    for year in course.years:
        console.print(
            f"  [dim]{_short(year.id)}[/dim] {year.label}  weight {year.weight:g}%"
        )


@app.command()
def show() -> None:
    """Show the course tree with grades, targets and classification."""
    from rich.table import Table

    async def action(store: CourseTreeStore) -> CourseTreeStore:
        return store

    store = _run(action)
    course = store.course
    if course is None:
        console.print("[yellow]No course yet.[/yellow] Run 'gradetrack init' to create one.")
        return

    dark_mode = load_app_config().dark_mode
    summary = course_summary(course)
    colour = color_for(summary.classification, dark_mode)

    console.print(f"\n[bold]{course.title}[/bold] [dim]({course.institution})[/dim]")
    console.print(
        f"  [dim]overall:[/dim]    {format_percentage(summary.overall_grade)} "
        f"[{colour}]{summary.classification.value}[/{colour}]"
    )
    console.print(f"  [dim]completion:[/dim] {summary.completion}%")
    console.print(f"  [dim]credits:[/dim]    {summary.total_credits}")
    if summary.target.target is not None:
        console.print(f"  [dim]target:[/dim]     {_target_status(summary.target)}")

    for year in course.years:
        ygrade = year_grade(year)
        header = (
            f"\n[bold]{year.label}[/bold] [dim]{_short(year.id)}[/dim]  "
            f"weight {year.weight:g}%  credits {year_credits(year)}  "
            f"grade {format_percentage(ygrade)}"
        )
        ytarget = _target_status(target_progress(ygrade, year.target_grade))
        if ytarget:
            header += f"  target {ytarget}"
        console.print(header)
        if not year.modules:
            console.print("  [dim]No modules[/dim]")
            continue

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="dim")
        table.add_column("Module / Assessment")
        table.add_column("Weight", justify="right")
        table.add_column("Grade", justify="right")
        table.add_column("Class")
        table.add_column("Target", justify="right")
        table.add_column("Needed", justify="right")

        for module in year.modules:
            mgrade = module_grade(module)
            classification = classify(mgrade)
            mcolour = color_for(classification, dark_mode)
            needed = required_average(module)
            table.add_row(
                _short(module.id),
                f"[bold]{module.name}[/bold]",
                f"{module.credits} cr",
                format_percentage(mgrade),
                f"[{mcolour}]{classification.value}[/{mcolour}]",
                _target_cell(target_progress(mgrade, module.target_grade)),
                format_percentage(needed),
            )
            for assessment in module.assessments:
                mark = "✓" if assessment.completed else "·"
                table.add_row(
                    _short(assessment.id),
                    f"  {mark} {assessment.name}",
                    f"{assessment.weight:g}%",
                    format_percentage(assessment.grade),
                    "",
                    "",
                    "",
                )
        console.print(table)


@app.command()
def target(
    value: float | None = typer.Argument(None, help="Target grade (omit to clear)"),
    year: str | None = typer.Option(None, "--year", help="Year id"),
    module: str | None = typer.Option(None, "--module", help="Module id"),
) -> None:
    """Set or clear a target for the course, a year or a module."""

    async def action(store: CourseTreeStore) -> str:
        course = _loaded_course(store)
        if module:
            owner, found = _locate_module(course, module)
            await store.set_module_target(owner.id, found.id, value)
            return found.name
        if year:
            found_year = _locate_year(course, year)
            await store.set_year_target(found_year.id, value)
            return found_year.label
        await store.set_course_target(value)
        return course.title

    name = _run(action)
    if value is None:
        console.print(f"[green]✓ Cleared target for {name}[/green]")
    else:
        console.print(f"[green]✓ Target for {name}: {format_percentage(value)}[/green]")


@app.command(name="edit-course")
def edit_course(
    institution: str | None = typer.Option(
        None, "--institution", "-i", help="University or college"
    ),
    title: str | None = typer.Option(None, "--title", "-t", help="Course title"),
) -> None:
    """Change the course institution or title."""
    fields = _provided(institution=institution, title=title)
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow] Pass --institution or --title.")
        return

    async def action(store: CourseTreeStore) -> Course:
        _loaded_course(store)
        await store.update_course_info(CourseUpdate(**fields))
        return store.course

    course = _run(action)
    console.print(f"[green]✓ Updated {course.title} at {course.institution}[/green]")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete the course and everything in it."""
    if not yes and not typer.confirm("Delete the whole course?"):
        raise typer.Exit(code=1)

    async def action(store: CourseTreeStore) -> None:
        await store.reset_course()

    _run(action)
    console.print("[green]✓ Course deleted[/green]")


# =============================================================================
# YEARS
# =============================================================================


@app.command(name="add-year")
def add_year(
    label: str = typer.Option("", "--label", "-l", help="Label (default 'Year N')"),
    weight: float = typer.Option(0, "--weight", "-w", help="Weight in the course (0-100)"),
) -> None:
    """Append an academic year."""

    async def action(store: CourseTreeStore) -> AcademicYear:
        return await store.add_year(label, weight)

    year = _run(action)
    console.print(f"[green]✓ Added {year.label}[/green]")
    console.print(f"  [dim]id:[/dim] {_short(year.id)}")


@app.command(name="edit-year")
def edit_year(
    year: str = typer.Argument(..., help="Year id"),
    label: str | None = typer.Option(None, "--label", "-l", help="New label"),
    weight: float | None = typer.Option(
        None, "--weight", "-w", help="Weight in the course (0-100)"
    ),
) -> None:
    """Change a year's label or weight."""
    fields = _provided(label=label, weight=weight)
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow] Pass --label or --weight.")
        return

    async def action(store: CourseTreeStore) -> AcademicYear:
        found = _locate_year(_loaded_course(store), year)
        await store.update_year(found.id, YearUpdate(**fields))
        return store.course.find_year(found.id)

    updated = _run(action)
    console.print(f"[green]✓ Updated {updated.label}[/green]  weight {updated.weight:g}%")


@app.command(name="remove-year")
def remove_year(year: str = typer.Argument(..., help="Year id")) -> None:
    """Remove a year with its modules and assessments."""

    async def action(store: CourseTreeStore) -> str:
        found = _locate_year(_loaded_course(store), year)
        await store.remove_year(found.id)
        return found.label

    label = _run(action)
    console.print(f"[green]✓ Removed {label}[/green]")


# =============================================================================
# MODULES
# =============================================================================


@app.command(name="add-module")
def add_module(
    year: str = typer.Argument(..., help="Year id"),
    name: str = typer.Argument(..., help="Module name"),
    credits: int = typer.Option(DEFAULT_CREDITS, "--credits", "-c", help="Credit value"),
) -> None:
    """Add a module to a year."""

    async def action(store: CourseTreeStore) -> Module:
        found = _locate_year(_loaded_course(store), year)
        return await store.add_module(found.id, name, credits)

    module = _run(action)
    console.print(f"[green]✓ Added module {module.name} ({module.credits} credits)[/green]")
    console.print(f"  [dim]id:[/dim] {_short(module.id)}")


@app.command(name="edit-module")
def edit_module(
    module: str = typer.Argument(..., help="Module id"),
    name: str | None = typer.Option(None, "--name", "-n", help="New name"),
    credits: int | None = typer.Option(None, "--credits", "-c", help="Credit value"),
) -> None:
    """Rename a module or change its credits."""
    fields = _provided(name=name, credits=credits)
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow] Pass --name or --credits.")
        return

    async def action(store: CourseTreeStore) -> Module:
        owner, found = _locate_module(_loaded_course(store), module)
        await store.update_module(owner.id, found.id, ModuleUpdate(**fields))
        return store.course.find_year(owner.id).find_module(found.id)

    updated = _run(action)
    console.print(f"[green]✓ Updated {updated.name} ({updated.credits} credits)[/green]")


@app.command(name="remove-module")
def remove_module(module: str = typer.Argument(..., help="Module id")) -> None:
    """Remove a module with its assessments."""

    async def action(store: CourseTreeStore) -> str:
        owner, found = _locate_module(_loaded_course(store), module)
        await store.remove_module(owner.id, found.id)
        return found.name

    name = _run(action)
    console.print(f"[green]✓ Removed {name}[/green]")


# =============================================================================
# ASSESSMENTS
# =============================================================================


@app.command(name="add-assessment")
def add_assessment(
    module: str = typer.Argument(..., help="Module id"),
    name: str = typer.Argument(..., help="Assessment name"),
    weight: float = typer.Argument(..., help="Weight within the module (0-100)"),
) -> None:
    """Add an assessment to a module."""

    async def action(store: CourseTreeStore) -> Any:
        owner, found = _locate_module(_loaded_course(store), module)
        return await store.add_assessment(owner.id, found.id, name, weight)

    assessment = _run(action)
    console.print(f"[green]✓ Added {assessment.name} ({assessment.weight:g}%)[/green]")
    console.print(f"  [dim]id:[/dim] {_short(assessment.id)}")


@app.command()
def grade(
    assessment: str = typer.Argument(..., help="Assessment id"),
    value: float = typer.Argument(..., help="Grade (0-100)"),
) -> None:
    """Record a grade and mark the assessment completed."""

    async def action(store: CourseTreeStore) -> float | None:
        year_id, module_id, assessment_id = _locate_assessment(
            _loaded_course(store), assessment
        )
        await store.record_grade(year_id, module_id, assessment_id, value)
        module = store.course.find_year(year_id).find_module(module_id)
        return module_grade(module)

    module_result = _run(action)
    console.print(f"[green]✓ Recorded {format_percentage(value)}[/green]")
    console.print(f"  [dim]module grade:[/dim] {format_percentage(module_result)}")


@app.command()
def complete(
    assessment: str = typer.Argument(..., help="Assessment id"),
    undo: bool = typer.Option(False, "--undo", help="Mark as not completed"),
) -> None:
    """Mark an assessment completed (or not)."""

    async def action(store: CourseTreeStore) -> None:
        ids = _locate_assessment(_loaded_course(store), assessment)
        await store.update_assessment(*ids, AssessmentUpdate(completed=not undo))

    _run(action)
    state = "not completed" if undo else "completed"
    console.print(f"[green]✓ Marked {state}[/green]")


@app.command(name="edit-assessment")
def edit_assessment(
    assessment: str = typer.Argument(..., help="Assessment id"),
    name: str | None = typer.Option(None, "--name", "-n", help="New name"),
    weight: float | None = typer.Option(
        None, "--weight", "-w", help="Weight within the module (0-100)"
    ),
) -> None:
    """Rename an assessment or change its weight."""
    fields = _provided(name=name, weight=weight)
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow] Pass --name or --weight.")
        return

    async def action(store: CourseTreeStore) -> None:
        ids = _locate_assessment(_loaded_course(store), assessment)
        await store.update_assessment(*ids, AssessmentUpdate(**fields))

    _run(action)
    console.print("[green]✓ Assessment updated[/green]")


@app.command(name="remove-assessment")
def remove_assessment(assessment: str = typer.Argument(..., help="Assessment id")) -> None:
    """Remove an assessment."""

    async def action(store: CourseTreeStore) -> None:
        ids = _locate_assessment(_loaded_course(store), assessment)
        await store.remove_assessment(*ids)

    _run(action)
    console.print("[green]✓ Assessment removed[/green]")


# =============================================================================
# SERVER
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    db: str | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Run the course API server."""
    import uvicorn

    from gradetrack.web.api import create_app

    db_path = Path(db or load_app_config().db_path)
    console.print(f"[blue]Serving course API on http://{host}:{port}[/blue]")
    console.print(f"  [dim]database:[/dim] {db_path}")
    uvicorn.run(create_app(db_path), host=host, port=port)


if __name__ == "__main__":
    app()
