"""
Hand-off from the capture screen to the result screen.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .classifier import Category


@dataclass(frozen=True)
class ResultMessage:
    """Immutable payload read once by the result screen."""
    image_uri: str
    label: Optional[str] = None
    score: Optional[float] = None

    @classmethod
    def from_category(cls, image_uri: str, category: Optional[Category]) -> "ResultMessage":
        if category is None:
            return cls(image_uri=image_uri)
        return cls(image_uri=image_uri, label=category.label, score=category.score)


def format_score(score: Optional[float]) -> str:
    """Render a confidence fraction as a whole percentage, rounding half up.

    A missing score renders as ``0``.
    """
    value = Decimal(repr(score if score is not None else 0.0)) * 100
    return str(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def render_result_text(message: ResultMessage) -> str:
    return f"{message.label} {format_score(message.score)}%"
