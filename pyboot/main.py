from argparse import ArgumentParser, Namespace
from logging import Logger
from pathlib import Path
from signal import SIGABRT, SIGINT, SIGQUIT, SIGTERM, signal
from threading import Event

from pyboot.config.config import config
from pyboot.services.dhcp.capture import PacketCapture
from pyboot.services.dhcp.dhcp import DHCPServer, dhcp_logger
from pyboot.services.logger.logger import LogLevel, MainLogger, configure_logging

DEFAULT_CAPTURE_DIR = "/tmp/pyboot/"

logger: Logger = MainLogger.get_logger(service_name="MAIN")
shutdown_event = Event()


def parse_args(argv: list[str] | None = None) -> Namespace:
    parser = ArgumentParser(prog="pyboot", description="Minimal BOOTP/DHCP server.")
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Path to a YAML config file."
    )
    parser.add_argument(
        "-p",
        "--packet-capture-dir",
        default=None,
        help=f"Directory where to write captured packets (default {DEFAULT_CAPTURE_DIR}).",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log every packet, repeatable."
    )
    parser.add_argument(
        "-w",
        "--write-capture",
        action="store_true",
        help="Write captured packets to disk.",
    )
    return parser.parse_args(argv)


def shutdown_handler(signum: int, frame):
    """Handles app shutdown calls.

    Args:
        signum (int): The signal number received.
        frame (frame object): Current stack frame.

    """
    logger.debug("Received %s.", signum)
    shutdown_event.set()


def register_shutdowns():
    """Registers shutdown handler for common interrupt signals"""
    signal(SIGINT, shutdown_handler)
    signal(SIGTERM, shutdown_handler)
    signal(SIGQUIT, shutdown_handler)
    signal(SIGABRT, shutdown_handler)


def build_capture(args: Namespace) -> PacketCapture | None:
    """Capture sink from flags, falling back to the `capture` config section."""
    _capture_conf = config.get("capture")
    if not (args.write_capture or _capture_conf.get("enabled")):
        return None
    _directory = (
        args.packet_capture_dir or _capture_conf.get("directory") or DEFAULT_CAPTURE_DIR
    )
    return PacketCapture(_directory, logger=dhcp_logger)


def main(argv: list[str] | None = None):
    args = parse_args(argv)
    if args.config:
        config.reload(args.config)
        configure_logging()
        logger.info("Value for config: %s", args.config)

    MainLogger.get_logger(
        service_name=dhcp_logger.name,
        log_level=LogLevel.from_verbosity(args.verbose).name,
    )

    logger.info("Starting services")
    register_shutdowns()

    DHCPServer.init(capture=build_capture(args))
    DHCPServer.start()

    logger.info("Services Started")
    shutdown_event.wait()
    logger.info("Stopping services.")

    DHCPServer.stop()
    logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
