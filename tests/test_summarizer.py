import json

import pytest

from tests.helpers import SUMMARY_PAYLOAD, ScriptedClient
from videodigest.analysis.models import WINDOW_FAILURE_PLACEHOLDER, Significance
from videodigest.analysis.summarizer import SequenceSummarizer
from videodigest.captioning.base import InferenceResponse, TokenUsage
from videodigest.captioning.usage import UsageAccumulator
from videodigest.core.exceptions import SummaryError


class FailingClient:
    def invoke(self, system_prompt, messages):
        raise ConnectionError("endpoint unreachable")


class TestSequenceSummarizer:
    def test_summarize_success(self):
        client = ScriptedClient()
        usage = UsageAccumulator()

        summary = SequenceSummarizer(client, usage).summarize(["first", "second"])

        assert summary.summary == SUMMARY_PAYLOAD["summary"]
        assert summary.key_events[0].significance is Significance.HIGH
        # lower-case significance is normalized
        assert summary.key_events[1].significance is Significance.LOW
        assert summary.objects_involved.items == ["bag"]
        assert summary.analysis.anomalies == ["unattended bag"]
        assert usage.input_tokens == 100
        assert usage.output_tokens == 50

    def test_placeholders_passed_as_is(self):
        client = ScriptedClient()
        descriptions = ["first", WINDOW_FAILURE_PLACEHOLDER, "third"]

        SequenceSummarizer(client, UsageAccumulator()).summarize(descriptions)

        content = client.calls[0]["messages"][0]["content"]
        assert "images" not in client.calls[0]["messages"][0]
        assert json.dumps(descriptions, ensure_ascii=False) in content

    def test_people_optional(self):
        payload = dict(SUMMARY_PAYLOAD, objects_involved={"items": []})
        client = ScriptedClient(summary_text=json.dumps(payload))
        summary = SequenceSummarizer(client, UsageAccumulator()).summarize(["x"])
        assert summary.objects_involved.people is None

    def test_invalid_json_raises_summary_error(self):
        client = ScriptedClient(summary_text="The video shows a lobby.")
        usage = UsageAccumulator()

        with pytest.raises(SummaryError) as exc_info:
            SequenceSummarizer(client, usage).summarize(["x"])

        assert exc_info.value.stage == "summarizing"
        assert usage.total_tokens == 150

    def test_invalid_significance_raises_summary_error(self):
        payload = dict(SUMMARY_PAYLOAD, key_events=[{"description": "x", "significance": "CRITICAL"}])
        client = ScriptedClient(summary_text=json.dumps(payload))
        with pytest.raises(SummaryError):
            SequenceSummarizer(client, UsageAccumulator()).summarize(["x"])

    def test_client_failure_raises_summary_error(self):
        with pytest.raises(SummaryError) as exc_info:
            SequenceSummarizer(FailingClient(), UsageAccumulator()).summarize(["x"])
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert "ConnectionError" in str(exc_info.value)

    def test_null_text_raises_summary_error(self):
        class NullTextClient:
            def invoke(self, system_prompt, messages):
                return InferenceResponse(text=None, usage=TokenUsage(40, 0))

        usage = UsageAccumulator()
        with pytest.raises(SummaryError) as exc_info:
            SequenceSummarizer(NullTextClient(), usage).summarize(["x"])
        assert exc_info.value.stage == "summarizing"
        assert usage.total_tokens == 40
