from typing import Callable, Optional, Sequence, Tuple

from videodigest.analysis.models import (
    INITIAL_CONTEXT,
    WindowAnalysis,
    WindowFailed,
    WindowOutcome,
    WindowSucceeded,
)
from videodigest.core.exceptions import InferenceWindowError
from videodigest.core.types import Window

AnalyzeFn = Callable[[Window, str], WindowAnalysis]
OutcomeHook = Callable[[WindowOutcome, int], None]


def fold_windows(
    windows: Sequence[Window],
    analyze: AnalyzeFn,
    initial_context: str = INITIAL_CONTEXT,
    on_outcome: Optional[OutcomeHook] = None,
) -> Tuple[list[WindowOutcome], str]:
    """
    Analyze windows strictly in order, carrying the running context.

    Each step sees the sequence_summary of the last successful window. A
    window that raises InferenceWindowError becomes a WindowFailed outcome
    and leaves the context untouched. Any other exception propagates.

    Returns one outcome per window and the final context.
    """
    context = initial_context
    outcomes: list[WindowOutcome] = []

    for position, window in enumerate(windows):
        try:
            analysis = analyze(window, context)
        except InferenceWindowError as e:
            e.window_position = position
            outcome: WindowOutcome = WindowFailed(position=position, error=e)
        else:
            outcome = WindowSucceeded(position=position, analysis=analysis)
            context = analysis.sequence_summary

        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome, len(windows))

    return outcomes, context
