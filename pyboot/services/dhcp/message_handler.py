from logging import DEBUG, Logger

from pyboot.libs.libs import measure_latency_decorator
from pyboot.services.dhcp.machine_config import MachineConfig, MachineConfigStore
from pyboot.services.dhcp.metrics import DHCPStats, dhcp_metrics
from pyboot.services.dhcp.models import (
    VENDOR_MAGIC,
    BadVendorMagic,
    DHCPMessageType,
    DHCPRejectError,
    MalformedMessageTypeOption,
    OpCode,
    UnknownMessageType,
    UnsupportedMessageType,
)
from pyboot.services.dhcp.options import (
    END,
    Option,
    OptionCode,
    dump_options,
    parse_options,
    serialize_options,
)
from pyboot.services.dhcp.packet import Packet, decode, encode

# | Request      | Response | Options                                                         |
# |--------------|----------|-----------------------------------------------------------------|
# | DHCPDISCOVER | OFFER    | message type, domain search                                     |
# | DHCPREQUEST  | ACK      | message type, subnet mask, router, lease time, server, DNS      |
# | anything else| none     | rejected as unsupported                                         |


class DHCPMessageHandler:
    """Turns one request packet into one response packet.

    Usage:
        handler = DHCPMessageHandler(machines=store, server_hostname="boot")
        reply: bytes | None = handler.handle(datagram)

    Dependencies:
        - MachineConfigStore: answer values looked up by client MAC.
        - Logger (optional): receives anomalies at WARNING and packet dumps
          at DEBUG.

    Notes:
        - `generate_response` is side effect free and raises a
          `DHCPRejectError` subclass when no response should be sent.
        - `handle` never raises `DHCPRejectError`; rejections are logged,
          counted and turned into None.
    """

    def __init__(
        self,
        machines: MachineConfigStore,
        server_hostname: str,
        vendor_magic: bytes = VENDOR_MAGIC,
        logger: Logger | None = None,
    ):
        self.machines = machines
        self.server_hostname = server_hostname
        self.vendor_magic = bytes(vendor_magic)
        self.logger = logger

    @measure_latency_decorator(metrics=dhcp_metrics)
    def handle(self, raw: bytes) -> bytes | None:
        """Decode, classify, build and encode.

        Args:
            raw (bytes): One inbound datagram.

        Returns:
            bytes | None: Encoded response, None when the packet was rejected.
        """
        DHCPStats.increment(key="received_total")
        try:
            _request = decode(raw)
            if self._verbose():
                self.logger.debug("packet received")
                _request.log(self.logger)

            _message_type = self.classify(_request)
            _response = self.build_response(_message_type, _request)
            _raw_response = encode(_response)

        except DHCPRejectError as err:
            DHCPStats.increment(key=f"rejected_{err.reason.value}")
            if self.logger:
                self.logger.warning("Dropped packet, %s: %s", err.reason.value, err)
            return None

        DHCPStats.increment(key=f"received_{_message_type.name.lower()}")
        DHCPStats.increment(key="sent_total")
        if self._verbose():
            self.logger.debug("sending packet")
            _response.log(self.logger)
        return _raw_response

    def generate_response(self, request: Packet) -> Packet:
        """Build the response for a decoded request.

        Raises:
            BadVendorMagic: cookie differs from the configured one.
            UnknownMessageType: option 53 missing or holds an unknown value.
            MalformedMessageTypeOption: option 53 is not exactly one byte.
            UnsupportedMessageType: known type other than DISCOVER/REQUEST.
            FieldTooLong: configured boot file name does not fit.
        """
        return self.build_response(self.classify(request), request)

    def classify(self, request: Packet) -> DHCPMessageType:
        if request.vendor_magic != self.vendor_magic:
            raise BadVendorMagic(
                f"Bad vendor magic value {list(request.vendor_magic)}."
            )

        _options = parse_options(request.options, logger=self.logger)
        if self._verbose():
            dump_options(_options, self.logger)

        _option = _options.get(OptionCode.DHCP_MESSAGE_TYPE)
        if _option is None:
            raise UnknownMessageType("DHCPMessageType option missing.")
        if _option.truncated or _option.length != 1:
            raise MalformedMessageTypeOption(
                f"DHCPMessageType option length is {_option.length}."
            )

        _message_type = DHCPMessageType.from_value(_option.data[0])
        if _message_type is None:
            raise UnknownMessageType(f"Unknown message type {_option.data[0]}.")
        return _message_type

    def build_response(self, message_type: DHCPMessageType, request: Packet) -> Packet:
        match message_type:
            case DHCPMessageType.DISCOVER:
                return self._handle_discover(request)
            case DHCPMessageType.REQUEST:
                return self._handle_request(request)
            case _:
                raise UnsupportedMessageType(
                    f"Cannot handle request for type {message_type.name}."
                )

    def _handle_discover(self, request: Packet) -> Packet:
        """DHCPDISCOVER: offer the configured address and boot file."""
        _machine = self.machines.for_client(request.client_mac)
        _response = self._set_common_fields(request, _machine)
        _response.set_boot_file_name(_machine.boot_file_name)
        _response.options = serialize_options(
            [
                Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([DHCPMessageType.OFFER])),
                Option(OptionCode.DOMAIN_SEARCH, _machine.domain_search.encode("ascii")),
                END,
            ]
        )
        return _response

    def _handle_request(self, request: Packet) -> Packet:
        """DHCPREQUEST: acknowledge with the full lease parameters."""
        _machine = self.machines.for_client(request.client_mac)
        _response = self._set_common_fields(request, _machine)
        _response.options = serialize_options(
            [
                Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([DHCPMessageType.ACK])),
                Option(OptionCode.SUBNET_MASK, _machine.subnet_mask.packed),
                Option(OptionCode.ROUTER, _machine.router.packed),
                Option(
                    OptionCode.IP_ADDRESS_LEASE_TIME,
                    _machine.lease_time.to_bytes(4, "big"),
                ),
                Option(OptionCode.DHCP_SERVER, _machine.dhcp_server.packed),
                Option(
                    OptionCode.DNS_SERVERS,
                    b"".join(_ip.packed for _ip in _machine.dns_servers),
                ),
                END,
            ]
        )
        return _response

    def _set_common_fields(self, request: Packet, machine: MachineConfig) -> Packet:
        _response = Packet(
            op=int(OpCode.RESPONSE),
            htype=request.htype,
            hlen=request.hlen,
            xid=request.xid,
            chaddr=request.chaddr,
            siaddr=machine.server_ip.packed,
            yiaddr=machine.your_ip.packed,
            vendor_magic=self.vendor_magic,
        )
        _response.set_server_hostname(self.server_hostname)
        return _response

    def _verbose(self) -> bool:
        return bool(self.logger and self.logger.isEnabledFor(DEBUG))
