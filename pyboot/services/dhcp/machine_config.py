from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Any, Mapping


@dataclass(frozen=True)
class MachineConfig:
    """Answer values handed to one client.

    Attributes:
        server_ip (IPv4Address): Address placed in `siaddr`.
        your_ip (IPv4Address): Address assigned to the client (`yiaddr`).
        subnet_mask (IPv4Address): Option 1.
        router (IPv4Address): Option 3.
        lease_time (int): Option 51, seconds.
        dhcp_server (IPv4Address): Option 54.
        dns_servers (tuple[IPv4Address, ...]): Option 6, in order.
        boot_file_name (str): Written to the `file` field of an OFFER.
        domain_search (str): Option 119.
    """

    server_ip: IPv4Address
    your_ip: IPv4Address
    subnet_mask: IPv4Address
    router: IPv4Address
    lease_time: int
    dhcp_server: IPv4Address
    dns_servers: tuple[IPv4Address, ...]
    boot_file_name: str
    domain_search: str


class MachineConfigStore:
    """Per client answer lookup.

    Every client currently gets the same configuration; lookups are keyed by
    MAC so a per client store can replace this one without touching callers.
    """

    def __init__(self, default: MachineConfig):
        self._default = default

    @classmethod
    def from_config(cls, machine: Mapping[str, Any]) -> "MachineConfigStore":
        """Build from the `machine` section of the YAML config."""
        return cls(
            MachineConfig(
                server_ip=IPv4Address(machine["server_ip"]),
                your_ip=IPv4Address(machine["your_ip"]),
                subnet_mask=IPv4Address(machine["subnet_mask"]),
                router=IPv4Address(machine["router"]),
                lease_time=int(machine["lease_time_seconds"]),
                dhcp_server=IPv4Address(machine["dhcp_server"]),
                dns_servers=tuple(IPv4Address(_ip) for _ip in machine["dns_servers"]),
                boot_file_name=str(machine["boot_file_name"]),
                domain_search=str(machine["domain_search"]),
            )
        )

    def for_client(self, mac: str) -> MachineConfig:
        return self._default
