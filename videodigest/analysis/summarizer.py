import json
from typing import Sequence

from pydantic import ValidationError

from videodigest.analysis.json_response import extract_json
from videodigest.analysis.models import VideoSummary
from videodigest.captioning.base import InferenceClient
from videodigest.captioning.usage import UsageAccumulator
from videodigest.core.exceptions import SummaryError
from videodigest.core.logging import get_logger
from videodigest.prompts.summary_prompt import SUMMARY_SYSTEM_PROMPT, SUMMARY_USER_TEMPLATE


class SequenceSummarizer:
    """
    Folds the ordered window descriptions into one VideoSummary.

    Placeholders of failed windows are passed through unchanged; the prompt
    tells the model to treat them as gaps. There is no fallback summary, so
    any failure here raises SummaryError.
    """

    def __init__(self, client: InferenceClient, usage: UsageAccumulator, language: str = "English"):
        self.client = client
        self.usage = usage
        self.system_prompt = SUMMARY_SYSTEM_PROMPT.format(language=language).strip()
        self.logger = get_logger()

    def summarize(self, descriptions: Sequence[str]) -> VideoSummary:
        user_text = SUMMARY_USER_TEMPLATE.format(
            frame_descriptions=json.dumps(list(descriptions), ensure_ascii=False),
        ).strip()
        messages = [{"role": "user", "content": user_text}]

        self.logger.info("summary_request_started", descriptions=len(descriptions))
        try:
            response = self.client.invoke(self.system_prompt, messages)
        except Exception as e:
            raise SummaryError("Summary model call failed", stage="summarizing", cause=e) from e

        self.usage.record(response.usage)

        data = extract_json(response.text)
        if data is None:
            self.logger.error("summary_json_parse_failed", raw_response=(response.text or "")[:200])
            raise SummaryError("Summary response is not a JSON object", stage="summarizing")

        try:
            summary = VideoSummary.model_validate(data)
        except ValidationError as e:
            raise SummaryError(
                "Summary response does not match the video summary schema",
                stage="summarizing", cause=e,
            ) from e

        self.logger.info("summary_generated", key_events=len(summary.key_events))
        return summary
