import logging
import os
import subprocess
import tempfile
import threading
from typing import List, Optional

from plantcare.domain.exceptions import DeviceError

logger = logging.getLogger(__name__)

DEFAULT_EXE = "/opt/vc/bin/raspistill"
# Full sensor resolution of the camera module
FULL_WIDTH = 3280
FULL_HEIGHT = 2464
CAPTURE_TIMEOUT_S = 60


class PiCamera:
    """
    Still camera driven by the ``raspistill`` command line tool.

    The capture tool is not reentrant, so one instance-level lock serialises
    all captures.
    """

    def __init__(self, exe: str = DEFAULT_EXE):
        self.exe = exe
        self._lock = threading.Lock()

    def build_command(self, filename: str, ev: int, shrink: int = 0) -> List[str]:
        args = [self.exe, "-o", filename, "--exposure", "verylong", "-t", "1", "-ev", str(ev)]
        if shrink > 1:
            args += ["-w", str(FULL_WIDTH // shrink), "-h", str(FULL_HEIGHT // shrink)]
        return args

    def take_picture(self, folder: Optional[str], ev: int, shrink: int = 0) -> str:
        """Capture one JPEG into a new ``image-*.jpg`` file in *folder*.

        Returns the file name. On failure the file is removed and
        :class:`DeviceError` is raised.
        """
        with self._lock:
            if folder:
                os.makedirs(folder, exist_ok=True)
            fd, filename = tempfile.mkstemp(prefix="image-", suffix=".jpg", dir=folder or None)
            os.close(fd)

            logger.info("Taking picture %s, ev: %s, shrink: %s", filename, ev, shrink)
            try:
                subprocess.run(
                    self.build_command(filename, ev, shrink),
                    check=True,
                    capture_output=True,
                    timeout=CAPTURE_TIMEOUT_S,
                )
            except (OSError, subprocess.SubprocessError) as exc:
                os.unlink(filename)
                raise DeviceError(f"Failed to take picture: {exc}") from exc
            return filename
