import select
import socket
from dataclasses import dataclass
from ipaddress import IPv4Address
from logging import Logger
from threading import RLock, Thread
from typing import Any, Mapping

from cachetools import TTLCache

from pyboot.config.config import config
from pyboot.services.dhcp.capture import PacketCapture
from pyboot.services.dhcp.machine_config import MachineConfigStore
from pyboot.services.dhcp.message_handler import DHCPMessageHandler
from pyboot.services.dhcp.metrics import DHCPStats
from pyboot.services.dhcp.packet import HEADER_SIZE, PACKET_SIZE, decode
from pyboot.services.logger.logger import MainLogger

dhcp_logger: Logger = MainLogger.get_logger(service_name="DHCP")


@dataclass(frozen=True)
class DHCPSettings:
    """Values of the `dhcp` config section used by the network loop."""

    host: str
    port: int
    reply_port: int
    server_hostname: str
    vendor_magic: bytes
    msg_size: int
    dedup_ttl: float
    dedup_size: int
    receive_timeout: float
    worker_join_timeout: float

    @classmethod
    def from_config(cls, dhcp: Mapping[str, Any]) -> "DHCPSettings":
        _timeouts = dhcp.get("timeouts")
        return cls(
            host=str(dhcp.get("host")),
            port=int(dhcp.get("port")),
            reply_port=int(dhcp.get("reply_port")),
            server_hostname=str(dhcp.get("server_hostname")),
            vendor_magic=bytes(dhcp.get("vendor_magic")),
            msg_size=int(dhcp.get("msg_size")),
            dedup_ttl=float(dhcp.get("dedup_ttl")),
            dedup_size=int(dhcp.get("dedup_size")),
            receive_timeout=float(_timeouts.get("receive")),
            worker_join_timeout=float(_timeouts.get("worker_join")),
        )


class DHCPSocket:
    """UDP socket bound to the server port with broadcast enabled."""

    def __init__(self, host: str, port: int) -> None:
        self._lock = RLock()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        self._sock.setblocking(False)
        self._sock.bind((host, port))
        self._closed = False

    def receive(self, msg_size: int, timeout: float) -> tuple[bytes, tuple[str, int]] | None:
        if self._closed:
            return None
        try:
            readable, _, _ = select.select([self._sock], [], [], timeout)
            if not readable:
                return None
            return self._sock.recvfrom(msg_size)
        except (OSError, ValueError):
            return None

    def send(self, data: bytes, addr: tuple[str, int]) -> None:
        with self._lock:
            if not self._closed:
                self._sock.sendto(data, addr)

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._closed = True
                self._sock.close()


def pad_datagram(data: bytes) -> bytes:
    """Zero-fill a short datagram up to the fixed packet size.

    Datagrams that do not even hold the fixed header and vendor cookie are
    returned as is so decoding rejects them as truncated.
    """
    if HEADER_SIZE <= len(data) < PACKET_SIZE:
        return data.ljust(PACKET_SIZE, b"\x00")
    return data


class DHCPServer:
    """Network loop around DHCPMessageHandler.

    One listener thread receives datagrams, hands each one to the handler
    and sends the reply to the assigned address on the reply port.
    """

    _lock = RLock()
    _initialised = False
    _running = False
    _workers: dict[str, Thread] = {}
    _socket: DHCPSocket | None = None
    _capture: PacketCapture | None = None
    _handler: DHCPMessageHandler
    _settings: DHCPSettings

    @classmethod
    def init(
        cls,
        handler: DHCPMessageHandler | None = None,
        capture: PacketCapture | None = None,
        settings: DHCPSettings | None = None,
    ) -> None:
        """Read settings from the active config unless given.

        Args:
            handler: Replaces the handler built from the `machine` section.
            capture: Optional capture sink for raw datagrams.
            settings: Replaces the `dhcp` config section.
        """
        with cls._lock:
            if cls._initialised:
                raise RuntimeError("Already Init")

            cls._settings = settings or DHCPSettings.from_config(config.get("dhcp"))
            cls._handler = handler or DHCPMessageHandler(
                machines=MachineConfigStore.from_config(config.get("machine")),
                server_hostname=cls._settings.server_hostname,
                vendor_magic=cls._settings.vendor_magic,
                logger=dhcp_logger,
            )
            cls._capture = capture
            cls._dedup = TTLCache(
                maxsize=cls._settings.dedup_size, ttl=cls._settings.dedup_ttl
            )
            cls._initialised = True

    @classmethod
    def reset(cls):
        """Forget init state, server must be stopped."""
        with cls._lock:
            if cls._running:
                raise RuntimeError("Server running.")
            cls._initialised = False
            cls._capture = None

    @classmethod
    def start(cls):
        """Bind the socket and start the listener thread."""
        if not cls._initialised:
            raise RuntimeError("Not init.")
        if cls._running:
            raise RuntimeError("Server already running.")

        with cls._lock:
            if cls._capture:
                cls._capture.start()
            cls._socket = DHCPSocket(host=cls._settings.host, port=cls._settings.port)
            cls._running = True

            _listener = Thread(target=cls._listen, name="dhcp-listener", daemon=True)
            _listener.start()
            cls._workers["dhcp-listener"] = _listener
            dhcp_logger.info("size of Boot Packet layout = %s", PACKET_SIZE)
            dhcp_logger.info(
                "Started %s on %s:%s", cls.__name__, cls._settings.host, cls._settings.port
            )

    @classmethod
    def stop(cls):
        if not cls._running:
            raise RuntimeError("Server not running.")

        with cls._lock:
            cls._running = False
            for _name, thread in cls._workers.items():
                if thread.is_alive():
                    thread.join(timeout=cls._settings.worker_join_timeout)
            cls._workers.clear()
            if cls._socket:
                cls._socket.close()
                cls._socket = None
            dhcp_logger.info("Stopped %s.", cls.__name__)

    @classmethod
    def _listen(cls):
        _socket = cls._socket
        while cls._running and _socket:
            _received = _socket.receive(
                msg_size=cls._settings.msg_size, timeout=cls._settings.receive_timeout
            )
            if not _received:
                continue
            _data, _addr = _received
            try:
                _reply = cls.process(_data)
                if _reply:
                    _socket.send(*_reply)
            except Exception as err:
                dhcp_logger.exception("Error processing packet from %s: %s.", _addr, err)

    @classmethod
    def process(cls, data: bytes) -> tuple[bytes, tuple[str, int]] | None:
        """Handle one datagram.

        Returns:
            tuple[bytes, tuple[str, int]] | None: Reply and destination, None
            for duplicates and rejected packets.
        """
        if not cls._initialised:
            raise RuntimeError("Not init.")

        with cls._lock:
            if data in cls._dedup:
                DHCPStats.increment(key="received_duplicate")
                return None
            cls._dedup[data] = True

        _data = pad_datagram(data)
        if cls._capture:
            cls._capture.write_inbound(_data)

        _response = cls._handler.handle(_data)
        if _response is None:
            return None

        if cls._capture:
            cls._capture.write_outbound(_response)

        _your_ip = IPv4Address(decode(_response).yiaddr)
        return _response, (str(_your_ip), cls._settings.reply_port)
