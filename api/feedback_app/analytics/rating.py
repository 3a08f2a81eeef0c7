# api/feedback_app/analytics/rating.py
from typing import Optional

# (upper bound of average/scale_max, label); checked in order
RATING_BANDS = (
    (0.36, "Poor"),
    (0.52, "Below Average"),
    (0.68, "Average"),
    (0.84, "Good"),
)
TOP_BAND = "Very Good"
NO_RATING = "N/A"


def rating_label(average: Optional[float], scale_max: int = 5) -> str:
    if not average or not scale_max:
        return NO_RATING
    normalized = average / scale_max
    for upper, label in RATING_BANDS:
        if normalized < upper:
            return label
    return TOP_BAND


def format_rating(average: Optional[float], scale_max: int = 5) -> str:
    """``"Good (4.20)"``, or ``"N/A"`` when there is nothing to rate."""
    if not average or not scale_max:
        return NO_RATING
    return f"{rating_label(average, scale_max)} ({average:.2f})"
