import logging
import re
import socket
from typing import Tuple

from .config import DEFAULT_PORT
from .core.errors import DomainResolutionError, InvalidAddress
from .core.parser import Endpoint

logger = logging.getLogger("treeftp.address")

IP_PATTERN = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
DOMAIN_PATTERN = re.compile(r"^([a-zA-Z0-9]+(-[a-zA-Z0-9]+)*\.)+[a-zA-Z]{2,}$")
LOCAL_NAMES = ("localhost",)


def is_valid_host(host: str) -> bool:
    if IP_PATTERN.match(host):
        return all(int(octet) <= 255 for octet in host.split('.'))
    return host.lower() in LOCAL_NAMES or bool(DOMAIN_PATTERN.match(host))


def parse_address(address: str) -> Tuple[str, int]:
    """Splits `host[:port]` and validates both halves."""
    address = address.strip()
    host, sep, port_text = address.rpartition(':')
    if not sep:
        host, port_text = address, ""

    if not is_valid_host(host):
        raise InvalidAddress(f"Invalid address format: {address}")

    if not port_text:
        return host, DEFAULT_PORT
    if not port_text.isdigit() or not 0 < int(port_text) <= 65535:
        raise InvalidAddress(f"Invalid port in address: {address}")
    return host, int(port_text)


def resolve(host: str, port: int = DEFAULT_PORT) -> Endpoint:
    """Resolves a host name to the first IPv4 endpoint."""
    try:
        infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise DomainResolutionError(f"Unable to resolve {host}: {e}") from e
    if not infos:
        raise DomainResolutionError(f"Unable to resolve {host}")
    ip, resolved_port = infos[0][4][:2]
    logger.debug(f"Resolved {host}:{port} to {ip}:{resolved_port}")
    return Endpoint(ip, resolved_port)


def resolve_address(address: str) -> Endpoint:
    return resolve(*parse_address(address))
