import logging

import pytest

from pyboot.services.dhcp.models import OptionTooLong
from pyboot.services.dhcp.options import (
    END,
    Option,
    OptionCode,
    dump_options,
    parse_options,
    serialize_options,
)
from pyboot.services.dhcp.packet import OPTIONS_SIZE, decode


def test_option_code_conversion() -> None:
    assert OptionCode.from_value(53) is OptionCode.DHCP_MESSAGE_TYPE
    assert OptionCode.from_value(255) is OptionCode.END
    assert OptionCode.from_value(2) is None
    assert OptionCode.from_value(300) is None
    assert str(OptionCode.DOMAIN_SEARCH) == "119"


def test_parse_vendor_data(discover_raw) -> None:
    options = parse_options(decode(discover_raw).options)

    assert len(options) == 10

    message_type = options[OptionCode.DHCP_MESSAGE_TYPE]
    assert message_type.code == 53
    assert message_type.length == 1
    assert message_type.data == bytes([1])

    assert options[OptionCode.MAXIMUM_DHCP_MESSAGE_SIZE].data == bytes([5, 192])
    # 0 = Intel x86PC
    assert options[OptionCode.CLIENT_SYSTEM_ARCHITECTURE_TYPE].data == bytes([0, 0])
    assert options[OptionCode.CLIENT_NETWORK_INTERFACE_IDENTIFIER].data == bytes([1, 2, 1])

    vendor_class = options[OptionCode.VENDOR_CLASS_IDENTIFIER]
    assert vendor_class.length == 32
    assert vendor_class.data.decode() == "PXEClient:Arch:00000:UNDI:002001"

    user_class = options[OptionCode.USER_CLASS_INFO]
    assert user_class.length == 4
    assert user_class.data == b"iPXE"

    param_list = options[OptionCode.PARAMETER_REQUEST_LIST]
    assert param_list.length == 23
    assert list(param_list.data) == [
        1, 3, 6, 7, 12, 15, 17, 26, 43, 60, 66, 67, 119,
        128, 129, 130, 131, 132, 133, 134, 135, 175, 203,
    ]

    assert options[OptionCode.ETHERBOOT].length == 48
    assert list(options[OptionCode.CLIENT_IDENTIFIER].data) == [1, 82, 84, 0, 148, 158, 242]
    assert options[OptionCode.CLIENT_MACHINE_IDENTIFIER].length == 17


def test_parse_is_idempotent(discover_raw) -> None:
    region = decode(discover_raw).options
    assert parse_options(region) == parse_options(region)


def test_parse_skips_pad_and_stops_at_end() -> None:
    region = bytes([0, 0, 53, 1, 3, 0, 255, 1, 4, 255, 255, 255, 0])

    options = parse_options(region)

    assert list(options) == [OptionCode.DHCP_MESSAGE_TYPE]
    assert options[OptionCode.DHCP_MESSAGE_TYPE].data == bytes([3])


def test_parse_without_end_marker() -> None:
    options = parse_options(bytes([53, 1, 1, 3, 4, 10, 0, 0, 1]))

    assert options[OptionCode.DHCP_MESSAGE_TYPE].data == bytes([1])
    assert options[OptionCode.ROUTER].data == bytes([10, 0, 0, 1])


def test_parse_truncated_tail(caplog) -> None:
    logger = logging.getLogger("test.dhcp.options")
    caplog.set_level(logging.WARNING, logger=logger.name)
    # Router declares 4 bytes, only 2 remain.
    region = bytes([53, 1, 1, 3, 4, 10, 0])

    options = parse_options(region, logger=logger)

    assert options[OptionCode.DHCP_MESSAGE_TYPE].data == bytes([1])
    router = options[OptionCode.ROUTER]
    assert router.data == b""
    assert router.length == 0
    assert router.truncated
    assert "invalid code = 3 len = 4" in caplog.text


def test_parse_code_without_length(caplog) -> None:
    logger = logging.getLogger("test.dhcp.options")
    caplog.set_level(logging.WARNING, logger=logger.name)

    options = parse_options(bytes([53, 1, 1, 3]), logger=logger)

    assert options[OptionCode.ROUTER] == Option(code=3, truncated=True)
    assert "invalid code = 3, no length byte left" in caplog.text


def test_reserialize_parsed_truncated_options() -> None:
    for region in (bytes([53, 1, 1, 3, 4, 10, 0]), bytes([53, 1, 1, 3])):
        options = parse_options(region)

        rewritten = serialize_options(list(options.values()))

        assert len(rewritten) == OPTIONS_SIZE
        assert rewritten[:6] == bytes([53, 1, 1, 3, 0, 255])


def test_length_follows_data() -> None:
    option = Option(OptionCode.ROUTER, bytes([1, 2, 3, 4, 5]))
    buffer = bytearray(8)

    assert option.length == 5
    assert option.write(buffer, 0) == 7
    assert len(buffer) == 8
    with pytest.raises(TypeError):
        Option(OptionCode.ROUTER, bytes(4), length=1)


def test_parse_drops_unknown_code(caplog) -> None:
    logger = logging.getLogger("test.dhcp.options")
    caplog.set_level(logging.WARNING, logger=logger.name)
    region = bytes([53, 1, 3, 250, 2, 9, 9, 1, 4, 255, 255, 255, 0, 255])

    options = parse_options(region, logger=logger)

    assert set(options) == {OptionCode.DHCP_MESSAGE_TYPE, OptionCode.SUBNET_MASK}
    assert options[OptionCode.SUBNET_MASK].data == bytes([255, 255, 255, 0])
    assert "unknown type code 250" in caplog.text


def test_parse_duplicate_code_last_wins() -> None:
    options = parse_options(bytes([53, 1, 1, 53, 1, 3, 255]))

    assert options[OptionCode.DHCP_MESSAGE_TYPE].data == bytes([3])


def test_new_vendor_data_ok() -> None:
    option = Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([1]))

    assert option.code == 53
    assert option.length == 1
    assert option.data == bytes([1])


def test_new_vendor_data_too_long() -> None:
    with pytest.raises(OptionTooLong):
        Option(OptionCode.DHCP_MESSAGE_TYPE, bytes(256))
    with pytest.raises(OptionTooLong):
        Option(OptionCode.DHCP_MESSAGE_TYPE, bytes(488))

    assert Option(OptionCode.DOMAIN_SEARCH, bytes(255)).length == 255


def test_write_vendor_data_to_buffer() -> None:
    buffer = bytearray([9] * 4)

    offset = Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([1])).write(buffer, 0)

    assert offset == 3
    assert buffer == bytearray([53, 1, 1, 9])


def test_write_pad_and_end() -> None:
    buffer = bytearray(4)

    assert Option(OptionCode.PAD).write(buffer, 0) == 0
    assert END.write(buffer, 1) == 2
    assert buffer == bytearray([0, 255, 0, 0])


def test_write_capacity_guard() -> None:
    buffer = bytearray(8)
    offset = Option(OptionCode.SUBNET_MASK, bytes([255, 255, 255, 0])).write(buffer, 0)
    assert offset == 6

    # Router needs 6 bytes, 2 are left.
    assert Option(OptionCode.ROUTER, bytes([10, 0, 0, 1])).write(buffer, offset) == offset
    assert buffer[offset:] == bytearray(2)


def test_serialize_options() -> None:
    region = serialize_options(
        [
            Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([2])),
            Option(OptionCode.PAD),
            Option(OptionCode.DOMAIN_SEARCH, b"younglogic.net"),
        ]
    )

    assert len(region) == OPTIONS_SIZE
    assert region[:3] == bytes([53, 1, 2])
    assert region[3:5] == bytes([119, 14])
    assert region[5:19] == b"younglogic.net"
    assert region[19] == 255
    assert region[20:] == bytes(OPTIONS_SIZE - 20)


def test_serialize_stops_at_end() -> None:
    region = serialize_options(
        [Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([5])), END, Option(OptionCode.ROUTER, bytes(4))]
    )

    assert region[:4] == bytes([53, 1, 5, 255])
    assert region[4:] == bytes(OPTIONS_SIZE - 4)


def test_serialize_drops_overflowing_option() -> None:
    big = Option(OptionCode.ETHERBOOT, bytes([7]) * 200)
    region = serialize_options(
        [Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([5])), big, big]
    )

    # Second copy would end at 3 + 202 + 202 > 312 and is skipped.
    assert region[3:5] == bytes([175, 200])
    assert region[205] == 255
    assert region[206:] == bytes(OPTIONS_SIZE - 206)

    options = parse_options(region)
    assert options[OptionCode.ETHERBOOT].length == 200


def test_serialized_options_parse_back() -> None:
    written = [
        Option(OptionCode.DHCP_MESSAGE_TYPE, bytes([5])),
        Option(OptionCode.SUBNET_MASK, bytes([255, 255, 255, 0])),
        Option(OptionCode.DNS_SERVERS, bytes([8, 8, 8, 8, 8, 8, 4, 4])),
    ]

    options = parse_options(serialize_options(written))

    assert list(options.values()) == written


def test_dump_options(discover_raw, caplog) -> None:
    logger = logging.getLogger("test.dhcp.options")
    caplog.set_level(logging.DEBUG, logger=logger.name)

    dump_options(parse_options(decode(discover_raw).options), logger)

    assert "option code = 53 len = 1" in caplog.text
    assert "option code = 60 len = 32" in caplog.text
