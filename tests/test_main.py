from pathlib import Path

from pyboot.main import DEFAULT_CAPTURE_DIR, build_capture, parse_args
from pyboot.services.logger.logger import LogLevel, MainLogger


def test_parse_args_defaults():
    args = parse_args([])

    assert args.config is None
    assert args.packet_capture_dir is None
    assert args.verbose == 0
    assert args.write_capture is False


def test_parse_args_flags():
    args = parse_args(["-c", "/etc/pyboot.yaml", "-p", "/var/tmp/cap", "-vv", "-w"])

    assert args.config == Path("/etc/pyboot.yaml")
    assert args.packet_capture_dir == "/var/tmp/cap"
    assert args.verbose == 2
    assert args.write_capture is True


def test_build_capture():
    assert build_capture(parse_args([])) is None

    capture = build_capture(parse_args(["-w"]))
    assert capture.directory == Path(DEFAULT_CAPTURE_DIR)

    capture = build_capture(parse_args(["-w", "-p", "/var/tmp/cap"]))
    assert capture.directory == Path("/var/tmp/cap")


def test_log_level():
    assert LogLevel("debug") is LogLevel.DEBUG
    assert LogLevel("nonsense") is LogLevel.INFO
    assert LogLevel.from_verbosity(0) is LogLevel.INFO
    assert LogLevel.from_verbosity(3) is LogLevel.DEBUG

    logger = MainLogger.get_logger(service_name="test.main", log_level="WARNING")
    assert logger.level == LogLevel.WARNING.value
