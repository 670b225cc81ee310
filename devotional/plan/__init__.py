"""Reading plan package."""

from devotional.plan.curriculum import PAULINE_EPISTLES
from devotional.plan.scheduler import (
    CHAPTER_SUFFIX,
    ReadingPlan,
    expand_curriculum,
    format_reference,
    get_reading_plan,
    reference_key,
)

__all__ = [
    "CHAPTER_SUFFIX",
    "PAULINE_EPISTLES",
    "ReadingPlan",
    "expand_curriculum",
    "format_reference",
    "get_reading_plan",
    "reference_key",
]
