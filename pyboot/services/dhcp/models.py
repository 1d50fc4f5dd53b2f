from enum import Enum, IntEnum, unique

VENDOR_MAGIC = bytes([99, 130, 83, 99])


@unique
class OpCode(IntEnum):
    """BOOTP operation"""

    REQUEST = 1
    RESPONSE = 2


@unique
class DHCPMessageType(IntEnum):
    """Value carried by the DHCPMessageType option (RFC 2132 9.6)."""

    DISCOVER = 1
    OFFER = 2
    REQUEST = 3
    DECLINE = 4
    ACK = 5
    NAK = 6
    RELEASE = 7

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def from_value(cls, value: int) -> "DHCPMessageType | None":
        """Checked conversion, None for values outside the enumeration."""
        try:
            return cls(value)
        except ValueError:
            return None


@unique
class RejectReason(str, Enum):
    """Why a request produced no response."""

    TRUNCATED_PACKET = "truncated_packet"
    BAD_VENDOR_MAGIC = "bad_vendor_magic"
    UNKNOWN_MESSAGE_TYPE = "unknown_message_type"
    MALFORMED_MESSAGE_TYPE_OPTION = "malformed_message_type_option"
    UNSUPPORTED_MESSAGE_TYPE = "unsupported_message_type"
    FIELD_TOO_LONG = "field_too_long"


class DHCPRejectError(Exception):
    """Base for every error that drops a single packet."""

    reason: RejectReason


class TruncatedPacket(DHCPRejectError):
    reason = RejectReason.TRUNCATED_PACKET


class BadVendorMagic(DHCPRejectError):
    reason = RejectReason.BAD_VENDOR_MAGIC


class UnknownMessageType(DHCPRejectError):
    reason = RejectReason.UNKNOWN_MESSAGE_TYPE


class MalformedMessageTypeOption(DHCPRejectError):
    reason = RejectReason.MALFORMED_MESSAGE_TYPE_OPTION


class UnsupportedMessageType(DHCPRejectError):
    reason = RejectReason.UNSUPPORTED_MESSAGE_TYPE


class FieldTooLong(DHCPRejectError):
    reason = RejectReason.FIELD_TOO_LONG


class OptionTooLong(ValueError):
    """Option value does not fit the one byte length field."""
