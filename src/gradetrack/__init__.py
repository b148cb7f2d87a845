"""gradetrack - personal academic grade tracker."""

__version__ = "0.1.0"
