"""Core grade tracking logic.

Modules:
- models: Course / AcademicYear / Module / Assessment tree and update structs
- classification: percentage to degree band and colour
- aggregation: module, year and course grades, completion, targets
- tree_store: in-memory tree with persisted mutations
- errors: error taxonomy
"""

__all__ = [
    "models",
    "classification",
    "aggregation",
    "tree_store",
    "errors",
]
