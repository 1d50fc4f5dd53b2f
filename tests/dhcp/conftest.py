import logging
from ipaddress import IPv4Address

import pytest
from scapy.layers.dhcp import BOOTP, DHCP

from pyboot.services.dhcp.machine_config import MachineConfig, MachineConfigStore
from pyboot.services.dhcp.message_handler import DHCPMessageHandler
from pyboot.services.dhcp.metrics import DHCPStats
from pyboot.services.dhcp.packet import PACKET_SIZE

CLIENT_MAC = bytes([0x52, 0x54, 0x00, 0x94, 0x9E, 0xF2])
TXN_ID = 4286046017
SERVER_HOSTNAME = "ayoungP40"

PARAMETER_REQUEST_LIST = bytes(
    [1, 3, 6, 7, 12, 15, 17, 26, 43, 60, 66, 67, 119,
     128, 129, 130, 131, 132, 133, 134, 135, 175, 203]
)
CLIENT_MACHINE_ID = bytes(
    [0, 178, 35, 76, 56, 225, 195, 173, 69, 183, 151, 210, 221, 34, 14, 27, 157]
)
ETHERBOOT = bytes([0xB1, 0x05, 0x01, 0x80, 0x86, 0x10, 0x0E]) + bytes(range(41))

# Options an iPXE client puts in its DISCOVER.
PXE_OPTIONS = [
    (53, b"\x01"),
    (57, b"\x05\xc0"),
    (93, b"\x00\x00"),
    (94, b"\x01\x02\x01"),
    (60, b"PXEClient:Arch:00000:UNDI:002001"),
    (77, b"iPXE"),
    (55, PARAMETER_REQUEST_LIST),
    (175, ETHERBOOT),
    (61, b"\x01" + CLIENT_MAC),
    (97, CLIENT_MACHINE_ID),
    "end",
]


def build_request(options: list, pad: bool = True, **bootp_fields) -> bytes:
    """Client request datagram built with scapy, zero padded to PACKET_SIZE."""
    _fields = {"op": 1, "htype": 1, "hlen": 6, "xid": TXN_ID, "chaddr": CLIENT_MAC}
    _fields.update(bootp_fields)
    _raw = bytes(BOOTP(**_fields) / DHCP(options=options))
    return _raw.ljust(PACKET_SIZE, b"\x00") if pad else _raw


@pytest.fixture
def machine_config() -> MachineConfig:
    return MachineConfig(
        server_ip=IPv4Address("192.168.144.1"),
        your_ip=IPv4Address("192.168.144.100"),
        subnet_mask=IPv4Address("255.255.255.0"),
        router=IPv4Address("192.168.123.1"),
        lease_time=86400,
        dhcp_server=IPv4Address("192.168.123.1"),
        dns_servers=(
            IPv4Address("75.75.75.75"),
            IPv4Address("75.75.75.76"),
            IPv4Address("8.8.8.8"),
        ),
        boot_file_name="pxelinux/pxelinux.0",
        domain_search="younglogic.net",
    )


@pytest.fixture
def handler(machine_config) -> DHCPMessageHandler:
    return DHCPMessageHandler(
        machines=MachineConfigStore(machine_config),
        server_hostname=SERVER_HOSTNAME,
        logger=logging.getLogger("test.dhcp"),
    )


@pytest.fixture
def discover_raw() -> bytes:
    return build_request(PXE_OPTIONS)


@pytest.fixture
def request_raw() -> bytes:
    return build_request([(53, b"\x03"), (61, b"\x01" + CLIENT_MAC), "end"])


@pytest.fixture(autouse=True)
def clear_stats():
    DHCPStats.clear()
    yield
    DHCPStats.clear()


@pytest.fixture
def make_request():
    return build_request
