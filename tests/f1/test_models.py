"""Tests for the course tree model and partial updates (F1)."""

import pytest

from gradetrack.core.errors import ValidationError
from gradetrack.core.models import (
    UNSET,
    AcademicYear,
    Assessment,
    AssessmentUpdate,
    Course,
    CourseUpdate,
    Module,
    ModuleUpdate,
    YearUpdate,
    apply_changes,
    default_year_label,
    default_year_weights,
    round_half_up,
)


class TestDefaultYearWeights:
    """Tests for default_year_weights()."""

    def test_three_years(self):
        assert default_year_weights(3) == [0, 40, 60]

    def test_four_years(self):
        assert default_year_weights(4) == [0, 20, 30, 50]

    def test_equal_share_for_other_lengths(self):
        assert default_year_weights(1) == [100]
        assert default_year_weights(2) == [50, 50]
        assert default_year_weights(6) == [17] * 6

    def test_rounding_may_drift_from_100(self):
        assert sum(default_year_weights(6)) == 102

    def test_returns_copy(self):
        weights = default_year_weights(3)
        weights[0] = 99
        assert default_year_weights(3) == [0, 40, 60]

    def test_year_label(self):
        assert default_year_label(2) == "Year 2"


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(0.5) == 1
        assert round_half_up(2.4999) == 2


class TestCourseSerialization:
    """Tests for to_dict/from_dict on the tree."""

    def test_from_dict_sorts_years(self):
        data = {
            "id": "c1",
            "user_id": "u1",
            "institution": "Uni",
            "title": "BSc",
            "created_at": "2024-01-01T00:00:00+00:00",
            "years": [
                {"id": "y3", "label": "Year 3", "year_number": 3, "weight": 60},
                {"id": "y1", "label": "Year 1", "year_number": 1, "weight": 0},
            ],
        }
        course = Course.from_dict(data)
        assert [y.id for y in course.years] == ["y1", "y3"]

    def test_round_trip_preserves_fields(self):
        course = Course(
            id="c1",
            user_id="u1",
            institution="Uni",
            title="BSc",
            target_grade=70.0,
            years=[
                AcademicYear(
                    id="y1",
                    label="Foundation",
                    year_number=1,
                    weight=0,
                    modules=[
                        Module(
                            id="m1",
                            name="Maths",
                            credits=15,
                            target_grade=65,
                            assessments=[
                                Assessment(id="a1", name="Exam", weight=70, grade=58.5, completed=True)
                            ],
                        )
                    ],
                )
            ],
        )
        restored = Course.from_dict(course.to_dict())
        assert restored == course

    def test_created_at_defaults_to_now(self):
        course = Course(id="c1", user_id="u1", institution="Uni", title="BSc")
        assert "T" in course.created_at

    def test_missing_label_gets_default(self):
        year = AcademicYear.from_dict({"id": "y2", "year_number": 2})
        assert year.label == "Year 2"

    def test_next_year_number_after_gap(self):
        """Numbers continue after the highest existing year."""
        course = Course(
            id="c1",
            user_id="u1",
            institution="Uni",
            title="BSc",
            years=[
                AcademicYear(id="y1", label="Year 1", year_number=1),
                AcademicYear(id="y3", label="Year 3", year_number=3),
            ],
        )
        assert course.next_year_number() == 4

    def test_counts_requires_grade_and_completed(self):
        assert Assessment(id="a", name="A", weight=10, grade=50, completed=True).counts
        assert not Assessment(id="a", name="A", weight=10, grade=None, completed=True).counts
        assert not Assessment(id="a", name="A", weight=10, grade=50, completed=False).counts


class TestUpdates:
    """Tests for the typed partial-update structs."""

    def test_unset_fields_are_omitted(self):
        update = CourseUpdate(title="  MSc  ")
        assert update.changes() == {"title": "MSc"}

    def test_none_clears_target(self):
        assert YearUpdate(target_grade=None).changes() == {"target_grade": None}

    def test_empty_update(self):
        assert ModuleUpdate().is_empty()
        assert ModuleUpdate().changes() == {}
        assert not ModuleUpdate(credits=10).is_empty()

    def test_defaults_are_unset(self):
        update = AssessmentUpdate()
        assert update.grade is UNSET
        assert update.completed is UNSET

    def test_grade_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            AssessmentUpdate(grade=101).changes()
        assert exc_info.value.field == "grade"

    def test_weight_negative(self):
        with pytest.raises(ValidationError):
            YearUpdate(weight=-1).changes()

    def test_credits_must_be_whole(self):
        with pytest.raises(ValidationError):
            ModuleUpdate(credits=7.5).changes()

    def test_completed_must_be_bool(self):
        with pytest.raises(ValidationError):
            AssessmentUpdate(completed="yes").changes()

    def test_grade_and_completed_independent(self):
        """Completion can be set without a grade and vice versa."""
        assert AssessmentUpdate(completed=True).changes() == {"completed": True}
        assert AssessmentUpdate(grade=40).changes() == {"grade": 40.0}

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CourseUpdate(institution="   ").changes()

    def test_apply_changes(self):
        module = Module(id="m1", name="Old", credits=20)
        apply_changes(module, ModuleUpdate(name="New", target_grade=60).changes())
        assert module.name == "New"
        assert module.target_grade == 60
        assert module.credits == 20
