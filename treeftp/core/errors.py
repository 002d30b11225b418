"""
Exception hierarchy for the FTP crawler.

Transport resets are absorbed by the channels (reconnect + empty result);
everything raised from here propagates to the crawl orchestrator.
"""


class FtpError(Exception):
    """Base class for every error raised by treeftp."""


class FtpConnectionError(FtpError, ConnectionError):
    """The initial TCP connection to an endpoint could not be established."""

    def __init__(self, endpoint, reason=None):
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Failed to connect to {endpoint} - {reason}")


class ReconnectFailed(FtpError):
    """The reconnect retry budget was exhausted."""

    def __init__(self, endpoint, budget: float):
        self.endpoint = endpoint
        self.budget = budget
        super().__init__(f"Failed to reconnect to {endpoint} after {budget:g}s")


class ReadError(FtpError):
    """A read failed for a reason other than a peer reset."""


class CommandTransmitError(FtpError):
    """Sending a command on the control connection failed."""


class CommandWriteFailed(CommandTransmitError):
    pass


class CommandFlushFailed(CommandTransmitError):
    pass


class InvalidPassiveResponse(FtpError):
    """A PASV/EPSV reply could not be turned into a data endpoint."""

    def __init__(self, line: str, detail: str = "malformed passive mode reply"):
        self.line = line
        super().__init__(f"{detail}: {line!r}")


class InvalidParsedIp(InvalidPassiveResponse):
    def __init__(self, line: str):
        super().__init__(line, "invalid IP address in passive mode reply")


class InvalidParsedPort(InvalidPassiveResponse):
    def __init__(self, line: str):
        super().__init__(line, "invalid port in passive mode reply")


class NoResponseReceived(FtpError):
    """The server sent nothing where a reply was expected."""

    def __init__(self, command):
        self.command = command
        super().__init__(f"No response received for {command}")


class SessionReplaced(FtpError):
    """
    The control (or data) connection was silently replaced by a reconnect.

    The new connection carries a fresh, unauthenticated session, so whatever
    operation was in flight has to be restarted from the top.
    """

    def __init__(self, endpoint):
        self.endpoint = endpoint
        super().__init__(f"Connection to {endpoint} was replaced by a reconnect")


class InvalidAddress(FtpError, ValueError):
    """A server address failed syntax validation."""


class DomainResolutionError(FtpError):
    """A host name could not be resolved to an IPv4 endpoint."""
