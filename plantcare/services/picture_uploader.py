import logging
import queue
import subprocess
import threading
from typing import Optional

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT_S = 30 * 60


class PictureUploader:
    """
    Runs the external upload script in a background thread.

    ``request_upload`` never blocks: a request made while another one is
    still pending is merged into it.
    """

    def __init__(self, script: str, pictures_dir: str):
        self.script = script
        self.pictures_dir = pictures_dir
        self._requests: "queue.Queue[bool]" = queue.Queue(maxsize=1)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="PictureUploader", daemon=True)
        self._thread.start()
        logger.info("Picture uploader started (%s)", self.script)

    def stop(self, timeout: float = 5.0):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def request_upload(self) -> bool:
        """Queue an upload; returns False when one was already pending."""
        try:
            self._requests.put_nowait(True)
        except queue.Full:
            logger.debug("Picture upload already pending")
            return False
        return True

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self._requests.get(timeout=0.5)
            except queue.Empty:
                continue
            self.push_pictures()

    def push_pictures(self) -> bool:
        """Run ``<script> <pictures dir>``; failures are logged, not raised."""
        logger.info("Pushing pictures from %s", self.pictures_dir)
        try:
            result = subprocess.run(
                [self.script, self.pictures_dir],
                capture_output=True,
                text=True,
                timeout=UPLOAD_TIMEOUT_S,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.error("Failed to run picture push script %s: %s", self.script, exc)
            return False

        if result.stdout:
            logger.info("Picture push output: %s", result.stdout.strip())
        if result.returncode != 0:
            logger.error("Picture push failed (exit %s): %s", result.returncode, result.stderr.strip())
            return False
        return True
