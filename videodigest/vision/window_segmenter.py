"""
Sliding-window segmentation of a sampled frame sequence.

Pure and deterministic: the same FrameSet and parameters always produce the
same windows. Only full windows are emitted, so a batch/slide combination
that does not divide the sequence evenly leaves trailing frames uncovered.
That is reported back in a CoverageReport instead of being corrected.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from videodigest.core.exceptions import ConfigError
from videodigest.core.types import SampledFrame, Window


@dataclass(frozen=True)
class CoverageReport:
    total_frames: int
    batch_size: int
    slide_size: int
    window_count: int
    uncovered_tail: int
    uncovered_positions: Tuple[int, ...]
    # Frames between consecutive windows, only non-zero when slide_size > batch_size
    gap_frames: int
    # Slide sizes in [1, batch_size - 1] that would leave no tail uncovered
    suggested_slide_sizes: Tuple[int, ...]

    @property
    def fully_covered(self) -> bool:
        return self.uncovered_tail == 0 and self.gap_frames == 0

    def to_dict(self) -> dict:
        return {
            "total_frames": self.total_frames,
            "batch_size": self.batch_size,
            "slide_size": self.slide_size,
            "window_count": self.window_count,
            "uncovered_tail": self.uncovered_tail,
            "uncovered_positions": list(self.uncovered_positions),
            "gap_frames": self.gap_frames,
            "suggested_slide_sizes": list(self.suggested_slide_sizes),
            "fully_covered": self.fully_covered,
        }


@dataclass(frozen=True)
class Segmentation:
    windows: Tuple[Window, ...]
    coverage: CoverageReport

    def __len__(self) -> int:
        return len(self.windows)


def suggest_slide_sizes(total_frames: int, batch_size: int) -> Tuple[int, ...]:
    span = total_frames - batch_size
    return tuple(s for s in range(1, batch_size) if span % s == 0)


def segment(frames: Sequence[SampledFrame], batch_size: int, slide_size: int) -> Segmentation:
    """
    Split frames into windows of exactly batch_size frames, starting at
    positions 0, slide_size, 2 * slide_size, ... up to len(frames) - batch_size.

    Raises ConfigError if batch_size exceeds the frame count or either
    parameter is not positive.
    """
    n = len(frames)
    if batch_size < 1:
        raise ConfigError(f"batch_size must be >= 1, got {batch_size}", stage="segmenting")
    if slide_size < 1:
        raise ConfigError(f"slide_size must be >= 1, got {slide_size}", stage="segmenting")
    if batch_size > n:
        raise ConfigError(
            f"batch_size ({batch_size}) cannot exceed the number of sampled frames ({n})",
            stage="segmenting",
        )

    last_start = n - batch_size
    windows = []
    for start in range(0, last_start + 1, slide_size):
        chunk = frames[start:start + batch_size]
        windows.append(
            Window(
                start=start,
                indices=tuple(f.index for f in chunk),
                image_refs=tuple(f.image_ref for f in chunk),
            )
        )

    uncovered_tail = last_start % slide_size
    gap_frames = max(0, slide_size - batch_size) * (len(windows) - 1)

    coverage = CoverageReport(
        total_frames=n,
        batch_size=batch_size,
        slide_size=slide_size,
        window_count=len(windows),
        uncovered_tail=uncovered_tail,
        uncovered_positions=tuple(range(n - uncovered_tail, n)),
        gap_frames=gap_frames,
        suggested_slide_sizes=suggest_slide_sizes(n, batch_size),
    )
    return Segmentation(windows=tuple(windows), coverage=coverage)
