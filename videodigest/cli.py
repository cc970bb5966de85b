import argparse
import sys

from videodigest.analysis.models import VideoSummary
from videodigest.captioning.ollama_client import OllamaInferenceClient
from videodigest.captioning.usage import UsageReport
from videodigest.core.config import get_settings
from videodigest.core.exceptions import PipelineError
from videodigest.core.logging import get_logger, setup_logging
from videodigest.media.fetcher import VideoFetcher
from videodigest.pipeline.orchestrator import PipelineOrchestrator
from videodigest.storage.report_store import ReportStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="videodigest",
        description="Summarize a CCTV video with a multimodal model over sliding frame windows.",
    )
    parser.add_argument("video", help="Video URL (http/https) or local file path")
    parser.add_argument("--sample-ms", type=int, dest="sample_interval_ms",
                        help="Sampling interval in milliseconds")
    parser.add_argument("--resize-ratio", type=float, help="Frame scale factor in (0, 1]")
    parser.add_argument("--batch-size", type=int, help="Frames per window")
    parser.add_argument("--slide-size", type=int, help="Frames the window moves per step")
    parser.add_argument("--output-dir", help="Directory for the saved report")
    parser.add_argument("--model", help="Override the multimodal model name")
    parser.add_argument("--skip-model-check", action="store_true",
                        help="Do not wait for Ollama or pull the model before running")
    return parser


def format_report(summary: VideoSummary, usage: UsageReport) -> str:
    lines = [
        "",
        "================ Video analysis result ================",
        "Summary:",
        summary.summary,
        "",
        "Key events:",
    ]
    for i, event in enumerate(summary.key_events, start=1):
        lines.append(f"{i}. {event.description} (significance: {event.significance.value})")

    lines += ["", "Objects involved:"]
    if summary.objects_involved.people:
        lines.append("People: " + ", ".join(summary.objects_involved.people))
    lines.append("Items: " + ", ".join(summary.objects_involved.items))

    lines += [
        "",
        "Analysis:",
        f"Pattern: {summary.analysis.pattern}",
        "Anomalies: " + ", ".join(summary.analysis.anomalies),
        f"Risk assessment: {summary.analysis.risk_assessment}",
        "=======================================================",
        "",
        "============ Token usage and cost ============",
        f"Input tokens:  {usage.input_tokens:,}",
        f"Output tokens: {usage.output_tokens:,}",
        f"Total tokens:  {usage.total_tokens:,}",
        f"Estimated cost: ${usage.cost_usd:.4f} USD",
        "==============================================",
    ]
    return "\n".join(lines)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()
    logger = get_logger()
    settings = get_settings()

    if args.model:
        settings = settings.model_copy(update={"multimodal_model": args.model})

    try:
        config = settings.pipeline_config(
            sample_interval_ms=args.sample_interval_ms,
            resize_ratio=args.resize_ratio,
            batch_size=args.batch_size,
            slide_size=args.slide_size,
            output_dir=args.output_dir,
        )

        client = OllamaInferenceClient.from_settings(settings)
        if not args.skip_model_check:
            client.wait_until_ready()
            client.pull_model()

        orchestrator = PipelineOrchestrator(
            config,
            client,
            fetcher=VideoFetcher(timeout=settings.download_timeout_seconds),
            language=settings.output_language,
        )
        result = orchestrator.run(args.video)
    except PipelineError as e:
        logger.error("analysis_failed", error_type=type(e).__name__, error=str(e))
        return 1
    except Exception as e:
        logger.exception("analysis_failed", error_type=type(e).__name__, error=str(e))
        return 1

    ReportStore(config.output_dir).save(result, args.video)
    print(format_report(result.summary, result.usage))
    return 0


if __name__ == "__main__":
    sys.exit(main())
