"""Exception hierarchy for the video analysis pipeline."""

from typing import Optional


class PipelineError(Exception):
    """
    Base exception for pipeline failures.

    Carries the stage the failure happened in and the underlying cause so the
    message is enough to diagnose a run from its logs alone.
    """

    def __init__(self, message: str, stage: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.cause = cause

    def with_stage(self, stage: str) -> "PipelineError":
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        text = self.message
        if self.stage:
            text = f"[{self.stage}] {text}"
        if self.cause is not None:
            text = f"{text} (caused by {type(self.cause).__name__}: {self.cause})"
        return text


class MediaError(PipelineError):
    """Raised when the source video cannot be fetched, opened or decoded."""

    pass


class ConfigError(PipelineError):
    """Raised when sampling or window parameters are inconsistent with the input."""

    pass


class InferenceError(PipelineError):
    """Raised by an inference client when the model endpoint call itself fails."""

    pass


class InferenceWindowError(PipelineError):
    """
    Raised when one window's model call or response parsing fails.

    The orchestrator recovers from this locally; it never ends a run.
    """

    def __init__(self, message: str, window_position: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.window_position = window_position


class SummaryError(PipelineError):
    """Raised when the final summary call or its parsing fails."""

    pass
