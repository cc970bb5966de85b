from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field
from typing import Callable, Optional

from videodigest.analysis.models import VideoSummary
from videodigest.captioning.ollama_client import OllamaInferenceClient
from videodigest.core.config import Settings, get_settings
from videodigest.core.exceptions import ConfigError, MediaError, SummaryError
from videodigest.core.logging import get_logger
from videodigest.core.types import PipelineConfig
from videodigest.media.fetcher import VideoFetcher
from videodigest.pipeline.orchestrator import PipelineOrchestrator
from videodigest.storage.report_store import ReportStore

router = APIRouter()
logger = get_logger()

PipelineFactory = Callable[[PipelineConfig], PipelineOrchestrator]


def get_pipeline_factory(settings: Settings = Depends(get_settings)) -> PipelineFactory:
    def factory(config: PipelineConfig) -> PipelineOrchestrator:
        return PipelineOrchestrator(
            config,
            OllamaInferenceClient.from_settings(settings),
            fetcher=VideoFetcher(timeout=settings.download_timeout_seconds),
            language=settings.output_language,
        )
    return factory


# ── Schemas ────────────────────────────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    video_url: str
    sample_interval_ms: Optional[int] = Field(None, gt=0)
    resize_ratio: Optional[float] = Field(None, gt=0, le=1)
    batch_size: Optional[int] = Field(None, gt=0)
    slide_size: Optional[int] = Field(None, gt=0)
    save_report: bool = True


class WindowDescription(BaseModel):
    position: int
    ok: bool
    description: str


class AnalyzeResponse(BaseModel):
    run_id: str
    summary: VideoSummary
    usage: dict
    coverage: dict
    windows: list[WindowDescription]
    report_dir: Optional[str] = None


# ── Health ─────────────────────────────────────────────────────────────────────

@router.get("/health")
def health():
    return {"status": "ok"}


# ── Analysis ───────────────────────────────────────────────────────────────────

@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    body: AnalyzeRequest,
    settings: Settings = Depends(get_settings),
    factory: PipelineFactory = Depends(get_pipeline_factory),
):
    try:
        config = settings.pipeline_config(
            sample_interval_ms=body.sample_interval_ms,
            resize_ratio=body.resize_ratio,
            batch_size=body.batch_size,
            slide_size=body.slide_size,
        )
        result = factory(config).run(body.video_url)
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except MediaError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SummaryError as e:
        raise HTTPException(status_code=502, detail=str(e))

    report_dir = None
    if body.save_report:
        report_dir = str(ReportStore(config.output_dir).save(result, body.video_url))

    logger.info("api_analysis_completed", run_id=result.run_id, video=body.video_url)
    return AnalyzeResponse(
        run_id=result.run_id,
        summary=result.summary,
        usage=result.usage.to_dict(),
        coverage=result.coverage.to_dict(),
        windows=[
            WindowDescription(position=o.position, ok=o.ok, description=o.description)
            for o in result.outcomes
        ],
        report_dir=report_dir,
    )


# ── Reports ────────────────────────────────────────────────────────────────────

@router.get("/reports/{run_id}", response_model=VideoSummary)
def get_report_summary(
    run_id: str = Path(..., pattern=r"^[0-9a-f]{12}$"),
    settings: Settings = Depends(get_settings),
):
    try:
        return ReportStore(settings.pipeline_config().output_dir).load_summary(run_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"No saved report for run {run_id}")
