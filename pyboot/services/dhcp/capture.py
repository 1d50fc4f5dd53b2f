from logging import Logger
from pathlib import Path
from threading import RLock
from time import time_ns


class PacketCapture:
    """Writes raw request/response datagrams to timestamped files.

    Files are named `packet.<unix time ns>.<direction>.bin` where direction
    is `in` for requests and `out` for responses.
    """

    def __init__(self, directory: Path | str, logger: Logger | None = None):
        self._lock = RLock()
        self.directory = Path(directory)
        self.logger = logger

    def start(self):
        """Create the capture directory."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def write_inbound(self, data: bytes) -> Path | None:
        return self._write(data, "in")

    def write_outbound(self, data: bytes) -> Path | None:
        return self._write(data, "out")

    def _write(self, data: bytes, direction: str) -> Path | None:
        with self._lock:
            _path = self.directory / f"packet.{time_ns()}.{direction}.bin"
            try:
                _path.write_bytes(data)
            except OSError as err:
                if self.logger:
                    self.logger.error("Failed to capture packet to %s: %s", _path, err)
                return None
            return _path
