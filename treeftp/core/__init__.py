"""
Core FTP crawler logic.
Includes the reconnectable channels, the reply parser, the client and the crawler.
"""

from .channel import Channel
from .client import FtpClient
from .connection import CommandChannel
from .crawler import Strategy, TreeCrawler
from .data_connection import DataChannel
from .errors import (
    CommandFlushFailed,
    CommandWriteFailed,
    DomainResolutionError,
    FtpConnectionError,
    FtpError,
    InvalidAddress,
    InvalidParsedIp,
    InvalidParsedPort,
    InvalidPassiveResponse,
    NoResponseReceived,
    ReadError,
    ReconnectFailed,
    SessionReplaced,
)
from .parser import Endpoint, Response

__all__ = [
    "Channel",
    "CommandChannel",
    "DataChannel",
    "FtpClient",
    "TreeCrawler",
    "Strategy",
    "Endpoint",
    "Response",
    "FtpError",
    "FtpConnectionError",
    "ReconnectFailed",
    "ReadError",
    "CommandWriteFailed",
    "CommandFlushFailed",
    "InvalidPassiveResponse",
    "InvalidParsedIp",
    "InvalidParsedPort",
    "NoResponseReceived",
    "SessionReplaced",
    "InvalidAddress",
    "DomainResolutionError",
]
