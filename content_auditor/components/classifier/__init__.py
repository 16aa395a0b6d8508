"""Classifier component - late vs upcoming partition of scheduled items."""

from .component import classify, is_late, lateness_of, run
from .models import Classification, ClassifiedItem, ClassifyInput

__all__ = [
    # Entry points
    "run",
    "classify",
    # Helpers
    "is_late",
    "lateness_of",
    # Models
    "Classification",
    "ClassifiedItem",
    "ClassifyInput",
]
