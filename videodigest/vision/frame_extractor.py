import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import cv2

from videodigest.core.exceptions import MediaError
from videodigest.core.logging import get_logger
from videodigest.core.types import FrameSet, SampledFrame, SampleParameters, VideoMeta

FRAME_FILENAME = "frame_{index:06d}.jpg"

# Equivalent of ffmpeg -q:v 2
JPEG_QUALITY = 95


@dataclass(frozen=True)
class VideoProbe:
    fps: float
    frame_count: int
    duration_sec: Optional[float]
    width: int
    height: int

    @property
    def total_frames(self) -> int:
        """
        Native frame count. Some containers report no count at all, in which
        case it is derived from duration × fps.
        """
        if self.frame_count > 0:
            return self.frame_count
        if self.duration_sec and self.fps:
            return int(math.ceil(self.duration_sec * self.fps))
        return 0


def sampling_stride(sample_interval_ms: int, fps: float) -> int:
    """Native frames between two sampled frames."""
    return max(1, round(sample_interval_ms / 1000 * fps))


def scaled_size(width: int, height: int, ratio: float) -> Tuple[int, int]:
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def probe_video(video_path: str) -> VideoProbe:
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap.isOpened():
            raise MediaError(f"Failed to open video: {video_path}", stage="sampling")

        fps = cap.get(cv2.CAP_PROP_FPS)
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        if not fps or fps <= 0 or width <= 0 or height <= 0:
            raise MediaError(
                f"No decodable video stream in: {video_path}", stage="sampling"
            )

        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)

        duration_sec = None
        if frame_count <= 0:
            # Seek to the end to read the stream duration
            cap.set(cv2.CAP_PROP_POS_AVI_RATIO, 1)
            end_msec = cap.get(cv2.CAP_PROP_POS_MSEC)
            duration_sec = end_msec / 1000.0 if end_msec and end_msec > 0 else None
        else:
            duration_sec = frame_count / fps

        return VideoProbe(
            fps=float(fps),
            frame_count=max(frame_count, 0),
            duration_sec=duration_sec,
            width=width,
            height=height,
        )
    finally:
        cap.release()


class FrameExtractor:
    """
    Samples every stride-th native frame of a video, resizes it and writes it
    as a JPEG into a directory owned by the caller.
    """

    def __init__(self):
        self.logger = get_logger()

    def extract(
        self,
        video_path: Path,
        params: SampleParameters,
        dest_dir: Path,
    ) -> Tuple[FrameSet, VideoMeta]:
        video_path = str(video_path)
        probe = probe_video(video_path)
        self.logger.info(
            "video_probed",
            video=video_path,
            fps=probe.fps,
            total_frames=probe.total_frames,
            width=probe.width,
            height=probe.height,
        )

        stride = sampling_stride(params.sample_interval_ms, probe.fps)
        out_w, out_h = scaled_size(probe.width, probe.height, params.resize_ratio)
        self.logger.info(
            "frame_sampling_started",
            stride=stride,
            sample_interval_ms=params.sample_interval_ms,
            frame_size=f"{out_w}x{out_h}",
        )

        os.makedirs(dest_dir, exist_ok=True)
        frames = []

        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            raise MediaError(f"Failed to open video: {video_path}", stage="sampling")

        try:
            native_index = 0
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                if native_index % stride == 0:
                    frames.append(
                        self._write_frame(frame, native_index, (out_w, out_h), dest_dir)
                    )
                native_index += 1
        finally:
            cap.release()

        if not frames:
            raise MediaError(
                f"Decoding yielded zero frames: {video_path}", stage="sampling"
            )

        # cap.read() reports decode errors and end of stream the same way
        if probe.total_frames - native_index > stride:
            self.logger.warning(
                "frame_decoding_stopped_early",
                video=video_path,
                decoded_frames=native_index,
                expected_frames=probe.total_frames,
            )

        meta = VideoMeta(
            fps=probe.fps,
            total_frame_count=probe.total_frames,
            sampled_count=len(frames),
            stride=stride,
            frame_width=out_w,
            frame_height=out_h,
        )
        self.logger.info(
            "frames_sampled",
            sampled=len(frames),
            total_frames=meta.total_frame_count,
            frame_size=f"{out_w}x{out_h}",
        )
        return FrameSet(frames=tuple(frames)), meta

    def _write_frame(self, frame, index: int, size: Tuple[int, int], dest_dir: Path) -> SampledFrame:
        path = Path(dest_dir) / FRAME_FILENAME.format(index=index)
        try:
            resized = cv2.resize(frame, size, interpolation=cv2.INTER_LINEAR)
            ok = cv2.imwrite(str(path), resized, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
        except cv2.error as e:
            raise MediaError(
                f"Failed to resize or encode frame {index}", stage="sampling", cause=e
            ) from e
        if not ok:
            raise MediaError(f"Failed to write frame {index} to {path}", stage="sampling")
        return SampledFrame(index=index, image_ref=path)
