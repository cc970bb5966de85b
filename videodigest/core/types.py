"""
Value types shared by the sampling, windowing and analysis stages.

All of them are frozen: a run's parameters and the frames it sampled never
change after they are produced.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Tuple

from videodigest.core.exceptions import ConfigError


# ── Parameters ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SampleParameters:
    sample_interval_ms: int = 1000
    resize_ratio: float = 0.7
    batch_size: int = 7
    slide_size: int = 7

    def __post_init__(self):
        if self.sample_interval_ms <= 0:
            raise ConfigError(
                f"sample_interval_ms must be > 0, got {self.sample_interval_ms}"
            )
        if not 0 < self.resize_ratio <= 1:
            raise ConfigError(
                f"resize_ratio must be in (0, 1], got {self.resize_ratio}"
            )
        if self.batch_size <= 0:
            raise ConfigError(f"batch_size must be > 0, got {self.batch_size}")
        if self.slide_size <= 0:
            raise ConfigError(f"slide_size must be > 0, got {self.slide_size}")


@dataclass(frozen=True)
class PipelineConfig:
    """Fully resolved run configuration. The pipeline never reads env or files."""
    params: SampleParameters = field(default_factory=SampleParameters)
    output_dir: Path = Path("./workspace")
    scratch_root: Path = Path(".")
    input_cost_per_1k: float = 0.00095
    output_cost_per_1k: float = 0.0038


# ── Frames ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SampledFrame:
    index: int          # native frame index in the source video
    image_ref: Path     # JPEG written to the run's scratch directory


@dataclass(frozen=True)
class FrameSet:
    frames: Tuple[SampledFrame, ...]

    def __post_init__(self):
        object.__setattr__(self, "frames", tuple(self.frames))
        for prev, cur in zip(self.frames, self.frames[1:]):
            if cur.index <= prev.index:
                raise ValueError(
                    f"Frame indices must be strictly increasing: {prev.index} then {cur.index}"
                )

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[SampledFrame]:
        return iter(self.frames)

    def __getitem__(self, item):
        return self.frames[item]

    @property
    def indices(self) -> Tuple[int, ...]:
        return tuple(f.index for f in self.frames)

    @property
    def image_refs(self) -> Tuple[Path, ...]:
        return tuple(f.image_ref for f in self.frames)


@dataclass(frozen=True)
class VideoMeta:
    fps: float
    total_frame_count: int
    sampled_count: int
    stride: int
    frame_width: int
    frame_height: int


# ── Windows ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Window:
    start: int                       # position of the first frame in the FrameSet
    indices: Tuple[int, ...]
    image_refs: Tuple[Path, ...]

    @property
    def frame_count(self) -> int:
        return len(self.image_refs)

    @property
    def frame_range(self) -> Tuple[int, int]:
        return self.indices[0], self.indices[-1]
