"""options.py.

Parsing and serialization of the vendor options region that follows the
magic cookie. Each option is `[code][length][value...]` except Pad (0)
and End (255), which are a single code byte.

Option codes are listed at:
https://www.iana.org/assignments/bootp-dhcp-parameters/bootp-dhcp-parameters.xhtml
"""

from dataclasses import dataclass, field
from enum import IntEnum, unique
from logging import Logger

from pyboot.services.dhcp.models import OptionTooLong
from pyboot.services.dhcp.packet import OPTIONS_SIZE

MAX_OPTION_LENGTH = 255


@unique
class OptionCode(IntEnum):
    """Option codes this server understands."""

    PAD = 0
    # RFC 2132 3.3
    SUBNET_MASK = 1
    # RFC 2132 3.5
    ROUTER = 3
    # RFC 2132 3.8
    DNS_SERVERS = 6
    # RFC 2132 3.14
    HOSTNAME = 12
    # RFC 2132 9.2
    IP_ADDRESS_LEASE_TIME = 51
    # RFC 2132 9.6
    DHCP_MESSAGE_TYPE = 53
    # RFC 2132 9.7
    DHCP_SERVER = 54
    # RFC 2132 9.8
    PARAMETER_REQUEST_LIST = 55
    # RFC 2132 9.10
    MAXIMUM_DHCP_MESSAGE_SIZE = 57
    # RFC 2132 9.13
    VENDOR_CLASS_IDENTIFIER = 60
    # RFC 2132 9.14
    CLIENT_IDENTIFIER = 61
    # RFC 3004 4
    USER_CLASS_INFO = 77
    # RFC 4578 2.1
    CLIENT_SYSTEM_ARCHITECTURE_TYPE = 93
    # RFC 4578 2.2
    CLIENT_NETWORK_INTERFACE_IDENTIFIER = 94
    # RFC 4578 2.3
    CLIENT_MACHINE_IDENTIFIER = 97
    # RFC 3397 2
    DOMAIN_SEARCH = 119
    # RFC 4578 2.4, PXE vendor specific
    PXE_128 = 128
    PXE_129 = 129
    PXE_130 = 130
    PXE_131 = 131
    PXE_132 = 132
    PXE_133 = 133
    PXE_134 = 134
    PXE_135 = 135
    # Etherboot, undocumented
    ETHERBOOT = 175
    END = 255

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def from_value(cls, value: int) -> "OptionCode | None":
        """Checked conversion, None for codes outside the enumeration."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Option:
    """A single TLV entry.

    `length` always equals `len(data)`. A parsed option whose value was cut
    short by the end of the buffer is kept with empty data and `truncated`
    set; the declared length only goes to the log.
    """

    code: int
    data: bytes = b""
    truncated: bool = False
    length: int = field(init=False)

    def __post_init__(self):
        if len(self.data) > MAX_OPTION_LENGTH:
            raise OptionTooLong(
                f"Option {self.code} value is {len(self.data)} bytes, max {MAX_OPTION_LENGTH}."
            )
        object.__setattr__(self, "length", len(self.data))

    def write(self, buffer: bytearray, offset: int) -> int:
        """Write this option into `buffer` at `offset`.

        Returns:
            int: next free offset, or `offset` unchanged when the option
            does not fit or is Pad.
        """
        _end_offset = offset + 2 + self.length
        if _end_offset > len(buffer):
            return offset

        if self.code == OptionCode.PAD:
            return offset

        buffer[offset] = self.code
        offset += 1
        if self.code == OptionCode.END:
            return offset

        buffer[offset] = self.length
        offset += 1
        buffer[offset:_end_offset] = self.data
        return _end_offset


END = Option(OptionCode.END)


def parse_options(data: bytes, logger: Logger | None = None) -> dict[OptionCode, Option]:
    """Scan an options region into a mapping of code to Option.

    Pad bytes are skipped, End stops the scan, and so does the end of the
    buffer. Unknown codes are dropped. A value cut short by the end of the
    buffer, or a code with no length byte after it, is kept as a truncated
    Option with empty data and ends the scan. A repeated code replaces the
    earlier entry.
    """
    _options: dict[OptionCode, Option] = {}
    _index = 0
    _size = len(data)

    while _index < _size:
        _code = data[_index]
        _index += 1

        if _code == OptionCode.END:
            break
        if _code == OptionCode.PAD:
            continue

        _truncated = _index >= _size
        if _truncated:
            if logger:
                logger.warning("invalid code = %s, no length byte left", _code)
            _value = b""
        else:
            _length = data[_index]
            _index += 1
            _value = data[_index:_index + _length]
            _index += _length

            _truncated = len(_value) < _length
            if _truncated:
                if logger:
                    logger.warning(
                        "invalid code = %s len = %s, only %s bytes left",
                        _code,
                        _length,
                        len(_value),
                    )
                _value = b""

        _known = OptionCode.from_value(_code)
        if _known is None:
            if logger:
                logger.warning("unknown type code %s", _code)
        else:
            _options[_known] = Option(code=_code, data=_value, truncated=_truncated)

        if _truncated:
            break

    return _options


def serialize_options(options: list[Option], capacity: int = OPTIONS_SIZE) -> bytes:
    """Lay out `options` in a zero filled region of `capacity` bytes.

    An End marker is appended unless one is already in the list. Writing
    stops at the first End. Options that do not fit are skipped.
    """
    _buffer = bytearray(capacity)
    _offset = 0
    for _option in [*options, END]:
        _offset = _option.write(_buffer, _offset)
        if _option.code == OptionCode.END:
            break
    return bytes(_buffer)


def dump_options(options: dict[OptionCode, Option], logger: Logger):
    for _option in options.values():
        logger.debug("option code = %s len = %s", _option.code, _option.length)
