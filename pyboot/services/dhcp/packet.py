"""packet.py.

Fixed BOOTP/DHCP record (RFC 951, RFC 2131) and its wire codec.

Layout, big-endian and packed with no gaps:

    | Offset | Size | Field                                   |
    |--------|------|-----------------------------------------|
    |   0    |   1  | op                                      |
    |   1    |   1  | htype                                   |
    |   2    |   1  | hlen                                    |
    |   3    |   1  | hops                                    |
    |   4    |   4  | xid                                     |
    |   8    |   2  | secs                                    |
    |  10    |   2  | flags                                   |
    |  12    |  16  | ciaddr, yiaddr, siaddr, giaddr          |
    |  28    |  16  | chaddr (6 bytes MAC + 10 bytes padding) |
    |  44    |  64  | sname                                   |
    | 108    | 128  | file                                    |
    | 236    |   4  | vendor magic cookie                     |
    | 240    | 312  | options                                 |
"""

from dataclasses import astuple, dataclass, field, fields
from ipaddress import IPv4Address
from logging import Logger
from struct import Struct

from pyboot.services.dhcp.models import FieldTooLong, TruncatedPacket

OPTIONS_SIZE = 312
SNAME_SIZE = 64
FILE_SIZE = 128

_LAYOUT = Struct(f"!BBBBIHH4s4s4s4s6s10s{SNAME_SIZE}s{FILE_SIZE}s4s{OPTIONS_SIZE}s")

PACKET_SIZE = _LAYOUT.size
HEADER_SIZE = PACKET_SIZE - OPTIONS_SIZE


def _zeros(size: int):
    return field(default=bytes(size))


@dataclass
class Packet:
    """One BOOTP/DHCP packet, zero filled unless decoded or built."""

    op: int = 0
    htype: int = 0
    hlen: int = 0
    hops: int = 0
    xid: int = 0
    secs: int = 0
    flags: int = 0
    ciaddr: bytes = _zeros(4)
    yiaddr: bytes = _zeros(4)
    siaddr: bytes = _zeros(4)
    giaddr: bytes = _zeros(4)
    chaddr: bytes = _zeros(6)
    chaddr_padding: bytes = _zeros(10)
    sname: bytes = _zeros(SNAME_SIZE)
    file: bytes = _zeros(FILE_SIZE)
    vendor_magic: bytes = _zeros(4)
    options: bytes = _zeros(OPTIONS_SIZE)

    @property
    def client_mac(self) -> str:
        return self.chaddr.hex(":")

    @property
    def server_hostname(self) -> str:
        return self.sname.rstrip(b"\x00").decode("ascii", errors="replace")

    @property
    def boot_file_name(self) -> str:
        return self.file.rstrip(b"\x00").decode("ascii", errors="replace")

    def set_server_hostname(self, name: str):
        self.sname = _pad_field("sname", name.encode("ascii"), SNAME_SIZE)

    def set_boot_file_name(self, name: str):
        self.file = _pad_field("file", name.encode("ascii"), FILE_SIZE)

    def log(self, logger: Logger):
        """Dump the header fields at DEBUG."""
        logger.debug("----------------------------------------------------")
        logger.debug("opcode      = %s", self.op)
        logger.debug("hwtype      = %s", self.htype)
        logger.debug("hw addr len = %s", self.hlen)
        logger.debug("hop count   = %s", self.hops)
        logger.debug("txn_id      = %x", self.xid)
        logger.debug("num_secs    = %s", self.secs)
        logger.debug("client_mac  = %s", self.client_mac)
        logger.debug("client_ip   = %s", IPv4Address(self.ciaddr))
        logger.debug("your_ip     = %s", IPv4Address(self.yiaddr))
        logger.debug("server_ip   = %s", IPv4Address(self.siaddr))
        logger.debug("gateway_ip  = %s", IPv4Address(self.giaddr))


def _pad_field(name: str, value: bytes, size: int) -> bytes:
    if len(value) > size:
        raise FieldTooLong(f"{name} is {len(value)} bytes, field holds {size}.")
    return value.ljust(size, b"\x00")


def decode(data: bytes) -> Packet:
    """Map the first PACKET_SIZE bytes of `data` onto a Packet.

    Raises:
        TruncatedPacket: fewer than PACKET_SIZE bytes were supplied.
    """
    if len(data) < PACKET_SIZE:
        raise TruncatedPacket(f"Got {len(data)} bytes, need {PACKET_SIZE}.")
    return Packet(*_LAYOUT.unpack_from(data, 0))


def encode(packet: Packet) -> bytes:
    """Inverse of decode, always PACKET_SIZE bytes long.

    Raises:
        FieldTooLong: a byte field is wider than its slot.
    """
    _values = []
    for _field, _value in zip(fields(packet), astuple(packet)):
        if isinstance(_value, bytes):
            _size = len(_field.default)
            if len(_value) > _size:
                raise FieldTooLong(
                    f"{_field.name} is {len(_value)} bytes, field holds {_size}."
                )
        _values.append(_value)
    return _LAYOUT.pack(*_values)
