import json
from datetime import datetime, timezone
from pathlib import Path

from videodigest.core.logging import get_logger
from videodigest.pipeline.orchestrator import PipelineResult


def _window_records(result: PipelineResult) -> list[dict]:
    records = []
    for outcome in result.outcomes:
        record = {
            "position": outcome.position,
            "ok": outcome.ok,
            "description": outcome.description,
        }
        if outcome.ok:
            record["key_events"] = [
                e.model_dump(mode="json") for e in outcome.analysis.key_events
            ]
        else:
            record["error"] = str(outcome.error)
        records.append(record)
    return records


class ReportStore:
    """
    Persists a finished run under <output_dir>/<run_id>/:
      summary.json  — the VideoSummary
      usage.json    — token totals and estimated cost
      windows.json  — every window description plus the coverage report
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.logger = get_logger()

    def run_dir(self, run_id: str) -> Path:
        return self.output_dir / run_id

    def save(self, result: PipelineResult, video_ref: str) -> Path:
        run_dir = self.run_dir(result.run_id)
        run_dir.mkdir(parents=True, exist_ok=True)

        (run_dir / "summary.json").write_text(
            result.summary.model_dump_json(indent=2), encoding="utf-8"
        )

        usage = {
            "run_id": result.run_id,
            "video": str(video_ref),
            "created_at": datetime.now(timezone.utc).isoformat(),
            **result.usage.to_dict(),
        }
        (run_dir / "usage.json").write_text(json.dumps(usage, indent=2), encoding="utf-8")

        windows = {
            "coverage": result.coverage.to_dict(),
            "video": {
                "fps": result.video_meta.fps,
                "total_frame_count": result.video_meta.total_frame_count,
                "sampled_count": result.video_meta.sampled_count,
                "stride": result.video_meta.stride,
                "frame_width": result.video_meta.frame_width,
                "frame_height": result.video_meta.frame_height,
            },
            "windows": _window_records(result),
        }
        (run_dir / "windows.json").write_text(
            json.dumps(windows, indent=2, ensure_ascii=False), encoding="utf-8"
        )

        self.logger.info("report_saved", run_dir=str(run_dir))
        return run_dir

    def load_summary(self, run_id: str) -> dict:
        return json.loads((self.run_dir(run_id) / "summary.json").read_text(encoding="utf-8"))
