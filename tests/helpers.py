import json
from pathlib import Path

import cv2
import numpy as np

from videodigest.captioning.base import InferenceResponse, TokenUsage
from videodigest.core.types import FrameSet, SampledFrame, VideoMeta


def window_json(summary: str, events=None) -> str:
    return json.dumps({"sequence_summary": summary, "key_events": events or []})


SUMMARY_PAYLOAD = {
    "summary": "A person enters the lobby and leaves a bag by the door.",
    "key_events": [
        {"description": "Bag left unattended near the door", "significance": "HIGH"},
        {"description": "Person walks through the lobby", "significance": "low"},
    ],
    "objects_involved": {"people": ["visitor"], "items": ["bag"]},
    "analysis": {
        "pattern": "Single visitor, brief stay",
        "anomalies": ["unattended bag"],
        "risk_assessment": "Medium: unattended object requires follow-up",
    },
}


class ScriptedClient:
    """
    Fake inference client. Each invoke pops the next scripted item: an
    InferenceResponse is returned, an exception instance is raised. Once the
    script runs out, window-style responses are generated from the call count.
    """

    def __init__(self, script=None, summary_text=None):
        self.script = list(script or [])
        self.summary_text = summary_text if summary_text is not None else json.dumps(SUMMARY_PAYLOAD)
        self.calls = []

    def invoke(self, system_prompt, messages):
        self.calls.append({"system": system_prompt, "messages": messages})
        if "images" not in messages[0]:
            return InferenceResponse(text=self.summary_text, usage=TokenUsage(100, 50))
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        n = len(self.calls)
        return InferenceResponse(text=window_json(f"summary {n}"), usage=TokenUsage(10, 5))

    @property
    def window_calls(self):
        return [c for c in self.calls if "images" in c["messages"][0]]

    def contexts(self):
        """Prev_frame_desc value sent with each window call."""
        out = []
        for call in self.window_calls:
            content = call["messages"][0]["content"]
            out.append(content.split("Prev_frame_desc:")[1].strip())
        return out


def make_frame_set(directory: Path, n: int, stride: int = 1) -> FrameSet:
    directory.mkdir(parents=True, exist_ok=True)
    frames = []
    for i in range(n):
        path = directory / f"frame_{i * stride:06d}.jpg"
        path.write_bytes(b"\xff\xd8fake-jpeg-%d" % i)
        frames.append(SampledFrame(index=i * stride, image_ref=path))
    return FrameSet(frames=tuple(frames))


class FakeExtractor:
    """Writes n placeholder frames into the destination directory."""

    def __init__(self, n: int):
        self.n = n
        self.dest_dirs = []

    def extract(self, video_path, params, dest_dir):
        self.dest_dirs.append(Path(dest_dir))
        frames = make_frame_set(Path(dest_dir), self.n, stride=10)
        meta = VideoMeta(
            fps=10.0, total_frame_count=self.n * 10, sampled_count=self.n,
            stride=10, frame_width=45, frame_height=34,
        )
        return frames, meta


class LocalFetcher:
    def __init__(self, path: Path):
        self.path = path

    def fetch(self, video_ref, dest_dir):
        return self.path


def write_test_video(path: Path, frame_count: int = 25, fps: float = 10.0, size=(64, 48)) -> Path:
    """Write a small MJPG AVI whose frames get brighter over time."""
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, size)
    for i in range(frame_count):
        frame = np.full((size[1], size[0], 3), (i * 9) % 255, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path


