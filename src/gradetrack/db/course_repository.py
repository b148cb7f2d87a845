"""Repository functions for the course tree tables.

Provides CRUD operations for courses, academic_years, modules and
assessments, plus ownership lookups used by the API to scope every
request to its caller. Child rows are returned in insertion order; years
are ordered by year_number.
"""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from gradetrack.core.errors import ConflictError
from gradetrack.core.models import (
    AcademicYear,
    Assessment,
    Course,
    Module,
    default_year_label,
    generate_id,
)
from gradetrack.db.database import get_db

logger = structlog.get_logger(__name__)

# Columns a partial update may touch, per table
UPDATABLE_COLUMNS: dict[str, frozenset[str]] = {
    "courses": frozenset({"institution", "title", "target_grade"}),
    "academic_years": frozenset({"label", "weight", "target_grade"}),
    "modules": frozenset({"name", "credits", "target_grade"}),
    "assessments": frozenset({"name", "weight", "grade", "completed"}),
}


# =============================================================================
# ROW CONVERSION
# =============================================================================


def _row_to_assessment(row: sqlite3.Row) -> Assessment:
    return Assessment(
        id=row["id"],
        name=row["name"],
        weight=row["weight"],
        grade=row["grade"],
        completed=bool(row["completed"]),
    )


def _row_to_module(row: sqlite3.Row) -> Module:
    return Module(
        id=row["id"],
        name=row["name"],
        credits=row["credits"],
        target_grade=row["target_grade"],
    )


def _row_to_year(row: sqlite3.Row) -> AcademicYear:
    return AcademicYear(
        id=row["id"],
        label=row["label"],
        year_number=row["year_number"],
        weight=row["weight"],
        target_grade=row["target_grade"],
    )


def _row_to_course(row: sqlite3.Row) -> Course:
    return Course(
        id=row["id"],
        user_id=row["user_id"],
        institution=row["institution"],
        title=row["title"],
        target_grade=row["target_grade"],
        created_at=row["created_at"],
    )


def _update_row(table: str, entity_id: str, changes: dict[str, Any]) -> bool:
    """Update whitelisted columns of one row. Returns True if it exists."""
    columns = [c for c in changes if c in UPDATABLE_COLUMNS[table]]

    with get_db() as conn:
        if not columns:
            row = conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (entity_id,)).fetchone()
            return row is not None

        assignments = ", ".join(f"{c} = ?" for c in columns)
        values = [changes[c] for c in columns]
        cursor = conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            (*values, entity_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug(f"{table}.updated", id=entity_id, fields=columns)
    return updated


def _delete_row(table: str, entity_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (entity_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug(f"{table}.deleted", id=entity_id)
    return deleted


# =============================================================================
# COURSES
# =============================================================================


def insert_course(
    user_id: str,
    institution: str,
    title: str,
    year_weights: list[float],
    target_grade: float | None = None,
) -> Course:
    """Insert a course and its default years in one transaction.

    Args:
        user_id: Owner
        institution: Institution name
        title: Course title
        year_weights: One weight per year, in year order
        target_grade: Optional course target

    Returns:
        The created Course with years attached (no modules)

    Raises:
        ConflictError: If the user already has a course
    """
    course = Course(
        id=generate_id(),
        user_id=user_id,
        institution=institution,
        title=title,
        target_grade=target_grade,
        years=[
            AcademicYear(
                id=generate_id(),
                label=default_year_label(number),
                year_number=number,
                weight=weight,
            )
            for number, weight in enumerate(year_weights, start=1)
        ],
    )

    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO courses (id, user_id, institution, title, target_grade, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    course.id,
                    user_id,
                    institution,
                    title,
                    target_grade,
                    course.created_at,
                ),
            )
            for year in course.years:
                conn.execute(
                    """
                    INSERT INTO academic_years (id, course_id, label, year_number, weight)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (year.id, course.id, year.label, year.year_number, year.weight),
                )
    except sqlite3.IntegrityError as e:
        raise ConflictError("Course already exists. Delete first.") from e

    logger.info("courses.inserted", course_id=course.id, years=len(course.years))
    return course


def get_course_tree(user_id: str) -> Course | None:
    """Load the user's course with every year, module and assessment.

    Args:
        user_id: Owner

    Returns:
        Course if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM courses WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None

        course = _row_to_course(row)
        year_rows = conn.execute(
            "SELECT * FROM academic_years WHERE course_id = ? ORDER BY year_number, rowid",
            (course.id,),
        ).fetchall()

        for year_row in year_rows:
            year = _row_to_year(year_row)
            module_rows = conn.execute(
                "SELECT * FROM modules WHERE year_id = ? ORDER BY rowid", (year.id,)
            ).fetchall()
            for module_row in module_rows:
                module = _row_to_module(module_row)
                assessment_rows = conn.execute(
                    "SELECT * FROM assessments WHERE module_id = ? ORDER BY rowid",
                    (module.id,),
                ).fetchall()
                module.assessments = [_row_to_assessment(r) for r in assessment_rows]
                year.modules.append(module)
            course.years.append(year)

    return course


def update_course(course_id: str, changes: dict[str, Any]) -> bool:
    """Partially update a course. Returns True if the course exists."""
    return _update_row("courses", course_id, changes)


def delete_course_for_user(user_id: str) -> bool:
    """Delete the user's course; the tree below it cascades.

    Returns:
        True if deleted, False if the user had no course
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM courses WHERE user_id = ?", (user_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("courses.deleted", user_id=user_id)
    return deleted


# =============================================================================
# YEARS
# =============================================================================


def insert_year(course_id: str, label: str, weight: float) -> AcademicYear:
    """Append a year with the next sequential year_number.

    An empty label defaults to "Year {n}".
    """
    year_id = generate_id()

    with get_db() as conn:
        row = conn.execute(
            "SELECT COALESCE(MAX(year_number), 0) + 1 AS next FROM academic_years WHERE course_id = ?",
            (course_id,),
        ).fetchone()
        year_number = row["next"]
        year = AcademicYear(
            id=year_id,
            label=label or default_year_label(year_number),
            year_number=year_number,
            weight=weight,
        )
        conn.execute(
            """
            INSERT INTO academic_years (id, course_id, label, year_number, weight)
            VALUES (?, ?, ?, ?, ?)
            """,
            (year.id, course_id, year.label, year.year_number, year.weight),
        )

    logger.debug("academic_years.inserted", year_id=year_id, year_number=year_number)
    return year


def update_year(year_id: str, changes: dict[str, Any]) -> bool:
    return _update_row("academic_years", year_id, changes)


def delete_year(year_id: str) -> bool:
    return _delete_row("academic_years", year_id)


# =============================================================================
# MODULES
# =============================================================================


def insert_module(year_id: str, name: str, credits: int) -> Module:
    module = Module(id=generate_id(), name=name, credits=credits)

    with get_db() as conn:
        conn.execute(
            "INSERT INTO modules (id, year_id, name, credits) VALUES (?, ?, ?, ?)",
            (module.id, year_id, module.name, module.credits),
        )

    logger.debug("modules.inserted", module_id=module.id, year_id=year_id)
    return module


def update_module(module_id: str, changes: dict[str, Any]) -> bool:
    return _update_row("modules", module_id, changes)


def delete_module(module_id: str) -> bool:
    return _delete_row("modules", module_id)


# =============================================================================
# ASSESSMENTS
# =============================================================================


def insert_assessment(module_id: str, name: str, weight: float) -> Assessment:
    assessment = Assessment(id=generate_id(), name=name, weight=weight)

    with get_db() as conn:
        conn.execute(
            "INSERT INTO assessments (id, module_id, name, weight) VALUES (?, ?, ?, ?)",
            (assessment.id, module_id, assessment.name, assessment.weight),
        )

    logger.debug("assessments.inserted", assessment_id=assessment.id, module_id=module_id)
    return assessment


def update_assessment(assessment_id: str, changes: dict[str, Any]) -> bool:
    if "completed" in changes:
        changes = {**changes, "completed": int(bool(changes["completed"]))}
    return _update_row("assessments", assessment_id, changes)


def delete_assessment(assessment_id: str) -> bool:
    return _delete_row("assessments", assessment_id)


# =============================================================================
# OWNERSHIP
# =============================================================================

_OWNER_QUERIES = {
    "course": "SELECT c.user_id FROM courses c WHERE c.id = ?",
    "year": """
        SELECT c.user_id FROM academic_years y
        JOIN courses c ON c.id = y.course_id
        WHERE y.id = ?
    """,
    "module": """
        SELECT c.user_id FROM modules m
        JOIN academic_years y ON y.id = m.year_id
        JOIN courses c ON c.id = y.course_id
        WHERE m.id = ?
    """,
    "assessment": """
        SELECT c.user_id FROM assessments a
        JOIN modules m ON m.id = a.module_id
        JOIN academic_years y ON y.id = m.year_id
        JOIN courses c ON c.id = y.course_id
        WHERE a.id = ?
    """,
}


def get_owner(kind: str, entity_id: str) -> str | None:
    """Get the user_id owning an entity.

    Args:
        kind: "course", "year", "module" or "assessment"
        entity_id: Entity identifier

    Returns:
        Owning user_id, or None if the entity doesn't exist
    """
    with get_db() as conn:
        row = conn.execute(_OWNER_QUERIES[kind], (entity_id,)).fetchone()

    if row is None:
        return None
    return row["user_id"]
