import os
from pathlib import Path
from urllib.parse import urlparse

import requests

from videodigest.core.exceptions import MediaError
from videodigest.core.logging import get_logger

DEFAULT_FILENAME = "video.mp4"
CHUNK_SIZE = 1024 * 1024


class VideoFetcher:
    """
    Resolves a video reference to a readable local file.

    http(s) URLs are streamed into dest_dir; local paths are used in place.
    """

    def __init__(self, timeout: int = 120):
        self.timeout = timeout
        self.logger = get_logger()

    def fetch(self, video_ref: str, dest_dir: Path) -> Path:
        parsed = urlparse(str(video_ref))
        if parsed.scheme in ("http", "https"):
            return self._download(str(video_ref), Path(dest_dir))

        local = Path(video_ref).expanduser()
        if not local.is_file():
            raise MediaError(f"Video not found: {video_ref}", stage="downloading")
        self.logger.info("using_local_video", path=str(local))
        return local

    def _download(self, url: str, dest_dir: Path) -> Path:
        filename = os.path.basename(urlparse(url).path) or DEFAULT_FILENAME
        local_path = dest_dir / filename
        self.logger.info("video_download_started", url=url)

        try:
            with requests.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise MediaError(
                        f"Download failed: HTTP status {response.status_code} for {url}",
                        stage="downloading",
                    )
                os.makedirs(dest_dir, exist_ok=True)
                with open(local_path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
        except requests.exceptions.RequestException as e:
            raise MediaError(f"Video download request failed: {url}", stage="downloading", cause=e) from e

        self.logger.info("video_downloaded", path=str(local_path), bytes=local_path.stat().st_size)
        return local_path
