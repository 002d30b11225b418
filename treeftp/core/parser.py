"""
Reply parsing for the FTP control connection.

Turns raw reply lines into numeric codes and negotiates data endpoints
out of PASV (227) and EPSV (229) replies.
"""

import logging
from typing import List, NamedTuple, Optional

from .errors import InvalidParsedIp, InvalidParsedPort, InvalidPassiveResponse

logger = logging.getLogger("treeftp.core.parser")

RESPONSE_TYPES = {
    '1': 'preliminary',
    '2': 'success',
    '3': 'missing_info',
    '4': 'error',
    '5': 'error'
}


class Endpoint(NamedTuple):
    """An IPv4 host and TCP port; usable directly as a socket address."""
    host: str
    port: int

    def __str__(self):
        return f"{self.host}:{self.port}"


class Response(NamedTuple):
    code: int
    line: str


Responses = List[Response]


def reply_code(line: str) -> int:
    """The 3-digit numeric prefix of a reply line, or 0 if there is none."""
    prefix = line[:3]
    if len(prefix) != 3 or not prefix.isdigit():
        return 0
    return int(prefix)


def closes_reply(line: str) -> bool:
    """A reply is complete once a line carries a space as its 4th character."""
    return len(line) >= 4 and line[3] == ' '


def reply_type(code: int) -> str:
    return RESPONSE_TYPES.get(str(code)[0], 'unknown') if code else 'unknown'


def last_code(responses: Responses) -> int:
    return responses[-1].code if responses else 0


def _parenthesized(line: str) -> Optional[str]:
    start = line.find('(')
    end = line.find(')', start + 1)
    if start == -1 or end == -1:
        return None
    return line[start + 1:end]


def _port(value: str, line: str) -> int:
    try:
        port = int(value)
    except ValueError as e:
        raise InvalidParsedPort(line) from e
    if not 0 < port <= 65535:
        raise InvalidParsedPort(line)
    return port


def parse_pasv_response(line: str) -> Endpoint:
    """Parses `227 Entering Passive Mode (h1,h2,h3,h4,p1,p2)`."""
    content = _parenthesized(line)
    if content is None:
        raise InvalidPassiveResponse(line)

    parts = [part.strip() for part in content.split(',')]
    if len(parts) < 6:
        raise InvalidPassiveResponse(line)

    try:
        octets = [int(part) for part in parts[:4]]
    except ValueError as e:
        raise InvalidParsedIp(line) from e
    if any(not 0 <= octet <= 255 for octet in octets):
        raise InvalidParsedIp(line)

    try:
        high, low = int(parts[4]), int(parts[5])
    except ValueError as e:
        raise InvalidParsedPort(line) from e
    if not (0 <= high <= 255 and 0 <= low <= 255):
        raise InvalidParsedPort(line)

    endpoint = Endpoint('.'.join(str(octet) for octet in octets), _port(str(high * 256 + low), line))
    logger.debug(f"PASV parsed: {endpoint}")
    return endpoint


def parse_epsv_response(line: str, control_host: str) -> Endpoint:
    """
    Parses `229 Entering Extended Passive Mode (|||port|)`.

    EPSV replies carry no usable address, so the host is the peer address
    of the control connection.
    """
    content = _parenthesized(line)
    if content is None:
        raise InvalidPassiveResponse(line)

    fields = content.split('|')
    if len(fields) != 5:
        raise InvalidPassiveResponse(line)

    endpoint = Endpoint(control_host, _port(fields[3].strip(), line))
    logger.debug(f"EPSV parsed: {endpoint}")
    return endpoint


def negotiate(line: str, extended: bool, control_host: str, cached: Optional[Endpoint] = None) -> Endpoint:
    """Turns the trailing PASV/EPSV reply line into a data endpoint."""
    if not extended:
        return parse_pasv_response(line)

    if _parenthesized(line) is None and cached is not None:
        logger.warning(f"EPSV reply without endpoint, reusing {cached}: {line!r}")
        return cached

    return parse_epsv_response(line, control_host)
