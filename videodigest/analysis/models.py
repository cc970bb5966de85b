"""
Structured results of window analysis and video summarization.

The model's JSON output is validated against these schemas; anything that
does not fit is a failed call, not a partially filled result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from videodigest.core.exceptions import InferenceWindowError

# Stands in for a failed window's description in the summary input
WINDOW_FAILURE_PLACEHOLDER = "[Error: analysis of this window failed.]"

# Running context before the first successful window
INITIAL_CONTEXT = "None"


# ── Window analysis ────────────────────────────────────────────────────────────

class WindowEvent(BaseModel):
    frame_range: Tuple[int, int]
    event_description: str


class WindowAnalysis(BaseModel):
    sequence_summary: str = Field(..., min_length=1)
    key_events: list[WindowEvent] = Field(default_factory=list)


# ── Video summary ──────────────────────────────────────────────────────────────

class Significance(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class SummaryEvent(BaseModel):
    description: str
    significance: Significance

    @field_validator("significance", mode="before")
    @classmethod
    def _upper(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class ObjectsInvolved(BaseModel):
    people: Optional[list[str]] = None
    items: list[str] = Field(default_factory=list)


class SituationAnalysis(BaseModel):
    pattern: str
    anomalies: list[str] = Field(default_factory=list)
    risk_assessment: str


class VideoSummary(BaseModel):
    summary: str
    key_events: list[SummaryEvent] = Field(default_factory=list)
    objects_involved: ObjectsInvolved
    analysis: SituationAnalysis


# ── Per-window outcomes ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class WindowSucceeded:
    position: int
    analysis: WindowAnalysis

    @property
    def description(self) -> str:
        return self.analysis.sequence_summary

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class WindowFailed:
    position: int
    error: InferenceWindowError

    @property
    def description(self) -> str:
        return WINDOW_FAILURE_PLACEHOLDER

    @property
    def ok(self) -> bool:
        return False


WindowOutcome = Union[WindowSucceeded, WindowFailed]
