"""
Request/response types for the crop tool.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

EDIT_ASPECT_RATIO: Tuple[int, int] = (16, 9)


class EditStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class EditRequest:
    """What the crop tool should edit and where it should write."""
    source_uri: str
    destination_uri: str
    aspect_ratio: Tuple[int, int] = EDIT_ASPECT_RATIO


@dataclass(frozen=True)
class EditResult:
    status: EditStatus
    output_uri: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, output_uri: str) -> "EditResult":
        return cls(EditStatus.SUCCESS, output_uri=output_uri)

    @classmethod
    def failed(cls, error: str) -> "EditResult":
        return cls(EditStatus.ERROR, error=error)

    @classmethod
    def cancelled(cls) -> "EditResult":
        return cls(EditStatus.CANCELLED)
