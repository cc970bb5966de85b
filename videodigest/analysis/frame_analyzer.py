import base64
from pathlib import Path

from pydantic import ValidationError

from videodigest.analysis.json_response import extract_json
from videodigest.analysis.models import WindowAnalysis
from videodigest.captioning.base import InferenceClient
from videodigest.captioning.usage import UsageAccumulator
from videodigest.core.exceptions import InferenceWindowError
from videodigest.core.logging import get_logger
from videodigest.core.types import Window
from videodigest.prompts.window_prompt import WINDOW_SYSTEM_PROMPT, WINDOW_USER_TEMPLATE


class FrameAnalyzer:
    """
    Describes one window of frames with a single model call.

    The previous window's description is passed along so the model can keep
    continuity between windows. Every failure mode of the call surfaces as
    InferenceWindowError; the caller decides what to do with it.
    """

    def __init__(self, client: InferenceClient, usage: UsageAccumulator, language: str = "English"):
        self.client = client
        self.usage = usage
        self.system_prompt = WINDOW_SYSTEM_PROMPT.format(language=language).strip()
        self.logger = get_logger()

    def _encode_image(self, path: Path) -> str:
        return base64.b64encode(Path(path).read_bytes()).decode("utf-8")

    def build_messages(self, window: Window, running_context: str) -> list[dict]:
        user_text = WINDOW_USER_TEMPLATE.format(
            frame_count=window.frame_count,
            frame_indices=list(window.indices),
            prev_frame_desc=running_context,
        ).strip()
        return [
            {
                "role": "user",
                "content": user_text,
                "images": [self._encode_image(p) for p in window.image_refs],
            }
        ]

    def analyze_window(self, window: Window, running_context: str) -> WindowAnalysis:
        try:
            messages = self.build_messages(window, running_context)
        except OSError as e:
            raise InferenceWindowError(
                "Could not read window frames",
                stage="analyzing", cause=e,
            ) from e

        try:
            response = self.client.invoke(self.system_prompt, messages)
        except Exception as e:
            raise InferenceWindowError(
                "Model call failed for window",
                stage="analyzing", cause=e,
            ) from e

        # Usage is counted even if the text turns out to be unusable
        self.usage.record(response.usage)

        data = extract_json(response.text)
        if data is None:
            self.logger.warning(
                "window_json_parse_failed",
                window_start=window.start,
                raw_response=(response.text or "")[:200],
            )
            raise InferenceWindowError(
                "Model response is not a JSON object",
                stage="analyzing",
            )

        try:
            analysis = WindowAnalysis.model_validate(data)
        except ValidationError as e:
            raise InferenceWindowError(
                "Model response does not match the window analysis schema",
                stage="analyzing", cause=e,
            ) from e

        self.logger.info(
            "window_analyzed",
            window_start=window.start,
            frame_range=list(window.frame_range),
            key_events=len(analysis.key_events),
        )
        return analysis
