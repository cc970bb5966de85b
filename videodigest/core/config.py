from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache

from videodigest.core.types import PipelineConfig, SampleParameters


class Settings(BaseSettings):
    app_env: str = Field("local", alias="APP_ENV")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    service_name: str = Field("videodigest", alias="SERVICE_NAME")

    ollama_host: str = Field("http://localhost:11434", alias="OLLAMA_HOST")

    # Vision model — receives every frame window and the final summary request
    multimodal_model: str = Field("llava", alias="MULTIMODAL_MODEL")

    # ── Inference ─────────────────────────────────────────────────────────────

    inference_max_tokens: int = Field(1024, alias="INFERENCE_MAX_TOKENS")
    # Near-zero temperature keeps the JSON output stable between runs
    inference_temperature: float = Field(0.01, alias="INFERENCE_TEMPERATURE")
    inference_timeout_seconds: int = Field(300, alias="INFERENCE_TIMEOUT_SECONDS")

    # Language the model is asked to write descriptions in
    output_language: str = Field("English", alias="OUTPUT_LANGUAGE")

    # USD per 1K tokens, used only for the cost estimate in the usage report
    input_cost_per_1k: float = Field(0.00095, alias="INPUT_COST_PER_1K")
    output_cost_per_1k: float = Field(0.0038, alias="OUTPUT_COST_PER_1K")

    # ── Sampling and windowing ────────────────────────────────────────────────

    # One frame every SAMPLE_INTERVAL_MS of video time
    sample_interval_ms: int = Field(1000, alias="SAMPLE_INTERVAL_MS")

    # Sampled frames are scaled by this factor before being sent to the model
    resize_ratio: float = Field(0.7, alias="RESIZE_RATIO")

    # Frames per window, and how far the window moves each step.
    # slide_size == frame_batch_size gives non-overlapping windows.
    frame_batch_size: int = Field(7, alias="FRAME_BATCH_SIZE")
    slide_size: int = Field(7, alias="SLIDE_SIZE")

    # ── Paths ─────────────────────────────────────────────────────────────────

    output_dir: str = Field("./workspace", alias="OUTPUT_DIR")

    # Per-run tmp_<uuid> directories are created here and removed afterwards
    scratch_root: str = Field(".", alias="SCRATCH_ROOT")

    download_timeout_seconds: int = Field(120, alias="DOWNLOAD_TIMEOUT_SECONDS")

    # ── API ───────────────────────────────────────────────────────────────────

    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")

    def pipeline_config(
        self,
        sample_interval_ms: Optional[int] = None,
        resize_ratio: Optional[float] = None,
        batch_size: Optional[int] = None,
        slide_size: Optional[int] = None,
        output_dir: Optional[str] = None,
    ) -> PipelineConfig:
        """
        Resolve settings (plus any per-run overrides) into the frozen struct
        the pipeline consumes. Raises ConfigError on invalid sampling values.
        """
        params = SampleParameters(
            sample_interval_ms=(
                sample_interval_ms if sample_interval_ms is not None
                else self.sample_interval_ms
            ),
            resize_ratio=resize_ratio if resize_ratio is not None else self.resize_ratio,
            batch_size=batch_size if batch_size is not None else self.frame_batch_size,
            slide_size=slide_size if slide_size is not None else self.slide_size,
        )
        return PipelineConfig(
            params=params,
            output_dir=Path(output_dir or self.output_dir),
            scratch_root=Path(self.scratch_root),
            input_cost_per_1k=self.input_cost_per_1k,
            output_cost_per_1k=self.output_cost_per_1k,
        )

    class Config:
        env_file = ".env"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
