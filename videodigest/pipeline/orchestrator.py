import shutil
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Type

from videodigest.analysis.frame_analyzer import FrameAnalyzer
from videodigest.analysis.models import INITIAL_CONTEXT, VideoSummary, WindowOutcome
from videodigest.analysis.summarizer import SequenceSummarizer
from videodigest.captioning.base import InferenceClient
from videodigest.captioning.usage import UsageAccumulator, UsageReport
from videodigest.core.exceptions import MediaError, PipelineError, SummaryError
from videodigest.core.logging import get_logger
from videodigest.core.types import PipelineConfig, VideoMeta
from videodigest.media.fetcher import VideoFetcher
from videodigest.pipeline.context_fold import fold_windows
from videodigest.vision.frame_extractor import FrameExtractor
from videodigest.vision.window_segmenter import CoverageReport, segment


class PipelineState(str, Enum):
    CREATED = "created"
    DOWNLOADING = "downloading"
    SAMPLING = "sampling"
    SEGMENTING = "segmenting"
    ANALYZING = "analyzing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    run_id: str
    summary: VideoSummary
    usage: UsageReport
    outcomes: tuple
    coverage: CoverageReport
    video_meta: VideoMeta

    @property
    def descriptions(self) -> list[str]:
        return [o.description for o in self.outcomes]

    @property
    def failed_windows(self) -> list[int]:
        return [o.position for o in self.outcomes if not o.ok]


@contextmanager
def scratch_directory(root: Path, logger=None) -> Iterator[Path]:
    """Create tmp_<uuid> under root and remove it on exit, whatever the outcome."""
    path = Path(root) / f"tmp_{uuid.uuid4().hex}"
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if logger is not None:
            logger.info("scratch_directory_removed", path=str(path))


class PipelineOrchestrator:
    """
    Runs one video through fetch → sample → segment → analyze → summarize.

    Single use: the usage accumulator belongs to this instance and covers
    exactly one run. Window failures are absorbed into the outcome list;
    every other failure moves the pipeline to FAILED and is re-raised with
    its stage attached after the scratch directory is removed. The stage
    that was running is kept in failed_stage, also for exceptions that are
    not PipelineErrors.
    """

    def __init__(
        self,
        config: PipelineConfig,
        client: InferenceClient,
        fetcher: Optional[VideoFetcher] = None,
        extractor: Optional[FrameExtractor] = None,
        language: str = "English",
    ):
        self.config = config
        self.usage = UsageAccumulator(
            input_cost_per_1k=config.input_cost_per_1k,
            output_cost_per_1k=config.output_cost_per_1k,
        )
        self.fetcher = fetcher or VideoFetcher()
        self.extractor = extractor or FrameExtractor()
        self.analyzer = FrameAnalyzer(client, self.usage, language=language)
        self.summarizer = SequenceSummarizer(client, self.usage, language=language)

        self.run_id = uuid.uuid4().hex[:12]
        self.logger = get_logger().bind(run_id=self.run_id)
        self.state = PipelineState.CREATED
        self.history: list[PipelineState] = [PipelineState.CREATED]
        self.result: Optional[PipelineResult] = None
        self.failed_stage: Optional[PipelineState] = None

    # ── State handling ─────────────────────────────────────────────────────────

    def _transition(self, state: PipelineState):
        self.logger.info("pipeline_state_changed", previous=self.state.value, state=state.value)
        self.state = state
        self.history.append(state)

    @contextmanager
    def _stage(self, state: PipelineState, wrap_as: Optional[Type[PipelineError]] = None):
        """
        Enter a stage. PipelineErrors get the stage name attached; other
        exceptions are wrapped as wrap_as when given.
        """
        self._transition(state)
        try:
            yield
        except PipelineError as e:
            raise e.with_stage(state.value)
        except Exception as e:
            if wrap_as is None:
                raise
            raise wrap_as(f"Unexpected failure while {state.value}", stage=state.value, cause=e) from e

    # ── Main pipeline ──────────────────────────────────────────────────────────

    def run(self, video_ref: str) -> PipelineResult:
        if self.state is not PipelineState.CREATED:
            raise RuntimeError("PipelineOrchestrator instances are single use")

        params = self.config.params
        self.logger.info(
            "pipeline_started",
            video=str(video_ref),
            sample_interval_ms=params.sample_interval_ms,
            resize_ratio=params.resize_ratio,
            batch_size=params.batch_size,
            slide_size=params.slide_size,
        )

        try:
            with scratch_directory(self.config.scratch_root, self.logger) as scratch:
                with self._stage(PipelineState.DOWNLOADING, wrap_as=MediaError):
                    video_path = self.fetcher.fetch(video_ref, scratch)

                with self._stage(PipelineState.SAMPLING, wrap_as=MediaError):
                    frames, meta = self.extractor.extract(video_path, params, scratch / "frames")

                with self._stage(PipelineState.SEGMENTING):
                    segmentation = segment(frames, params.batch_size, params.slide_size)
                    self._log_coverage(segmentation.coverage)

                with self._stage(PipelineState.ANALYZING):
                    outcomes, _ = fold_windows(
                        segmentation.windows,
                        self.analyzer.analyze_window,
                        initial_context=INITIAL_CONTEXT,
                        on_outcome=self._log_outcome,
                    )

                with self._stage(PipelineState.SUMMARIZING, wrap_as=SummaryError):
                    summary = self.summarizer.summarize([o.description for o in outcomes])

        except Exception as e:
            # The state still names the stage that was running
            self.failed_stage = self.state
            self._transition(PipelineState.FAILED)
            self.logger.error(
                "pipeline_failed",
                stage=getattr(e, "stage", None) or self.failed_stage.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        usage = self.usage.snapshot()
        self.result = PipelineResult(
            run_id=self.run_id,
            summary=summary,
            usage=usage,
            outcomes=tuple(outcomes),
            coverage=segmentation.coverage,
            video_meta=meta,
        )
        self._transition(PipelineState.DONE)

        self.logger.info("token_usage_report", **usage.to_dict())
        self.logger.info(
            "pipeline_completed",
            windows=len(outcomes),
            failed_windows=self.result.failed_windows,
        )
        return self.result

    # ── Logging hooks ──────────────────────────────────────────────────────────

    def _log_coverage(self, coverage: CoverageReport):
        self.logger.info(
            "windows_created",
            windows=coverage.window_count,
            batch_size=coverage.batch_size,
            slide_size=coverage.slide_size,
        )
        if not coverage.fully_covered:
            self.logger.warning(
                "window_coverage_incomplete",
                uncovered_tail=coverage.uncovered_tail,
                gap_frames=coverage.gap_frames,
                suggested_slide_sizes=list(coverage.suggested_slide_sizes),
            )

    def _log_outcome(self, outcome: WindowOutcome, total: int):
        if outcome.ok:
            self.logger.info("window_completed", window=outcome.position + 1, total=total)
        else:
            self.logger.warning(
                "window_analysis_failed",
                window=outcome.position + 1,
                total=total,
                error=str(outcome.error),
                action="placeholder_inserted_continuing",
            )
