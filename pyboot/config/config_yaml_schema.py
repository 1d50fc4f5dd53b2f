from ipaddress import IPv4Address
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator


class Meta(BaseModel):
    name: str
    version: str
    date: str


class DHCPTimeouts(BaseModel):
    receive: float
    worker_join: float


class DHCP(BaseModel):
    host: str
    port: int = Field(..., ge=1, le=65535)
    reply_port: int = Field(..., ge=1, le=65535)
    server_hostname: str = Field(..., max_length=64)
    vendor_magic: List[int] = Field(..., min_length=4, max_length=4)
    msg_size: int
    dedup_ttl: float
    dedup_size: int
    timeouts: DHCPTimeouts

    @field_validator("server_hostname")
    @classmethod
    def check_ascii(cls, value: str) -> str:
        if not value.isascii():
            raise ValueError("must be ASCII")
        return value


class Machine(BaseModel):
    server_ip: IPv4Address
    your_ip: IPv4Address
    subnet_mask: IPv4Address
    router: IPv4Address
    lease_time_seconds: int = Field(..., ge=0, le=0xFFFFFFFF)
    dhcp_server: IPv4Address
    dns_servers: List[IPv4Address]
    boot_file_name: str = Field(..., max_length=128)
    domain_search: str = Field(..., max_length=255)

    @field_validator("boot_file_name", "domain_search")
    @classmethod
    def check_ascii(cls, value: str) -> str:
        if not value.isascii():
            raise ValueError("must be ASCII")
        return value


class Capture(BaseModel):
    enabled: bool
    directory: str


class Libs(BaseModel):
    metrics_max_size: int


class ConfigSchema(BaseModel):
    meta: Meta
    dhcp: DHCP
    machine: Machine
    capture: Capture
    libs: Libs
    logging: Dict[str, Any]
