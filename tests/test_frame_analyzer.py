import base64

import pytest

from tests.helpers import ScriptedClient, make_frame_set, window_json
from videodigest.analysis.frame_analyzer import FrameAnalyzer
from videodigest.captioning.base import InferenceResponse, TokenUsage
from videodigest.captioning.usage import UsageAccumulator
from videodigest.core.exceptions import InferenceError, InferenceWindowError
from videodigest.vision.window_segmenter import segment


@pytest.fixture
def window(tmp_path):
    frames = make_frame_set(tmp_path / "frames", 3, stride=30)
    return segment(frames, 3, 3).windows[0]


class TestFrameAnalyzer:
    def test_analyze_window_success(self, window):
        events = [{"frame_range": [0, 60], "event_description": "Person enters"}]
        client = ScriptedClient([InferenceResponse(window_json("A person walks in", events), TokenUsage(120, 30))])
        usage = UsageAccumulator()

        analysis = FrameAnalyzer(client, usage).analyze_window(window, "None")

        assert analysis.sequence_summary == "A person walks in"
        assert analysis.key_events[0].frame_range == (0, 60)
        assert usage.input_tokens == 120
        assert usage.output_tokens == 30

    def test_request_contains_images_in_order_and_context(self, window):
        client = ScriptedClient()
        FrameAnalyzer(client, UsageAccumulator()).analyze_window(window, "previous summary")

        message = client.calls[0]["messages"][0]
        expected = [base64.b64encode(p.read_bytes()).decode("utf-8") for p in window.image_refs]
        assert message["images"] == expected
        assert "Frame_count:\n3" in message["content"]
        assert "[0, 30, 60]" in message["content"]
        assert client.contexts() == ["previous summary"]

    def test_system_prompt_language(self, window):
        client = ScriptedClient()
        FrameAnalyzer(client, UsageAccumulator(), language="Korean").analyze_window(window, "None")
        assert "Write every description in Korean." in client.calls[0]["system"]

    def test_fenced_json_is_accepted(self, window):
        text = "Here you go:\n```json\n" + window_json("Fenced") + "\n```"
        client = ScriptedClient([InferenceResponse(text)])
        analysis = FrameAnalyzer(client, UsageAccumulator()).analyze_window(window, "None")
        assert analysis.sequence_summary == "Fenced"

    def test_unparseable_response_counts_usage(self, window):
        client = ScriptedClient([InferenceResponse("not json at all", TokenUsage(90, 10))])
        usage = UsageAccumulator()

        with pytest.raises(InferenceWindowError):
            FrameAnalyzer(client, usage).analyze_window(window, "None")

        assert usage.total_tokens == 100

    def test_schema_violation_raises(self, window):
        client = ScriptedClient([InferenceResponse('{"key_events": []}')])
        with pytest.raises(InferenceWindowError) as exc_info:
            FrameAnalyzer(client, UsageAccumulator()).analyze_window(window, "None")
        assert exc_info.value.stage == "analyzing"

    @pytest.mark.parametrize("error", [InferenceError("endpoint down"), RuntimeError("boom")])
    def test_client_error_raises_window_error_without_usage(self, window, error):
        client = ScriptedClient([error])
        usage = UsageAccumulator()

        with pytest.raises(InferenceWindowError) as exc_info:
            FrameAnalyzer(client, usage).analyze_window(window, "None")

        assert exc_info.value.cause is error
        assert usage.total_tokens == 0

    def test_missing_frame_file_raises_window_error(self, window):
        window.image_refs[1].unlink()
        with pytest.raises(InferenceWindowError):
            FrameAnalyzer(ScriptedClient(), UsageAccumulator()).analyze_window(window, "None")
