"""
Reconnectable line-oriented TCP channel shared by the control and data
connections.

A channel owns its socket and the endpoint it was opened against. When a
read is cut by a peer reset, the channel reconnects on its own, raises its
`reconnected` flag and hands back an empty reply. The flag stays raised
until the owner calls `clear_reconnected()` after reacting to it.
"""

import errno
import logging
import socket
import time
from typing import Optional

from ..config import ReconnectPolicy
from .errors import FtpConnectionError, ReadError, ReconnectFailed
from .parser import Endpoint, Response, Responses, closes_reply, reply_code

logger = logging.getLogger("treeftp.core.channel")

# ECONNABORTED / ECONNRESET and their WinSock counterparts
RESET_ERRNOS = {errno.ECONNABORTED, errno.ECONNRESET, 10053, 10054}


def is_peer_reset(error: OSError) -> bool:
    if isinstance(error, (ConnectionAbortedError, ConnectionResetError)):
        return True
    return error.errno in RESET_ERRNOS


class Channel:
    # Control replies are framed by reply codes; data streams are not
    framed = True

    def __init__(self, endpoint: Endpoint, timeout: Optional[float] = None,
                 policy: Optional[ReconnectPolicy] = None):
        self.endpoint = Endpoint(*endpoint)
        self.timeout = timeout
        self.policy = policy or ReconnectPolicy()
        self.socket: Optional[socket.socket] = None
        self._reader = None
        self._writer = None
        self._reconnected = False
        self.reconnect_count = 0

    def __repr__(self):
        return f"<{type(self).__name__} {self.endpoint} connected={self.socket is not None}>"

    @property
    def connected(self) -> bool:
        return self.socket is not None

    @property
    def reconnected(self) -> bool:
        return self._reconnected

    def clear_reconnected(self):
        self._reconnected = False

    @property
    def peer_host(self) -> str:
        """IP address of the remote side, falling back to the configured host."""
        if self.socket is not None:
            try:
                return self.socket.getpeername()[0]
            except OSError:
                pass
        return self.endpoint.host

    def _open(self) -> socket.socket:
        return socket.create_connection(self.endpoint, timeout=self.timeout)

    def _attach(self, sock: socket.socket):
        self.socket = sock
        self._reader = sock.makefile('rb')
        self._writer = sock.makefile('wb')

    def connect(self):
        if self.socket is not None:
            raise RuntimeError("Connection already established.")
        logger.info(f"Connecting to {self.endpoint} (timeout={self.timeout}s)")
        try:
            sock = self._open()
        except OSError as e:
            logger.error(f"Failed to connect to {self.endpoint} - {e}")
            raise FtpConnectionError(self.endpoint, e) from e
        self._attach(sock)
        logger.info(f"Connected to {self.endpoint}")

    def close(self):
        if self.socket is None:
            return
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError:
                pass
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.socket.close()
        logger.debug(f"Closed connection to {self.endpoint}")
        self.socket = self._reader = self._writer = None

    def reconnect(self):
        """
        Replaces the live socket with a fresh connection to the same endpoint.

        Waits `policy.settle` seconds, then retries every `policy.interval`
        seconds until `policy.budget` seconds have elapsed.

        Raises:
            ReconnectFailed: no attempt succeeded within the budget.
        """
        policy = self.policy
        logger.warning(f"Reconnecting to {self.endpoint} in {policy.settle:g}s")
        time.sleep(policy.settle)

        deadline = time.monotonic() + policy.budget
        while time.monotonic() < deadline:
            try:
                sock = self._open()
            except OSError as e:
                logger.error(f"Failed to reconnect to {self.endpoint} ({e}). Retrying in {policy.interval:g}s...")
                time.sleep(policy.interval)
                continue

            self.close()
            self._attach(sock)
            self._reconnected = True
            self.reconnect_count += 1
            logger.info(f"Reconnected to {self.endpoint}")
            self._after_reconnect()
            return

        logger.error(f"Failed to reconnect to {self.endpoint} after {policy.budget:g}s")
        raise ReconnectFailed(self.endpoint, policy.budget)

    def _after_reconnect(self):
        pass

    def read_responses(self) -> Responses:
        """
        Reads one reply: lines up to the closing line, or up to end of stream
        for unframed channels.

        Returns an empty list when the read was cut by a peer reset; the
        channel has reconnected by then and the caller must re-issue.
        """
        if self.socket is None:
            raise RuntimeError("No connection established.")

        responses: Responses = []
        while True:
            try:
                raw = self._reader.readline()
            except OSError as e:
                if is_peer_reset(e):
                    logger.error(f"Connection to {self.endpoint} was aborted. Attempting to reconnect...")
                    self.reconnect()
                    return []
                raise ReadError(f"Failed to read from {self.endpoint}: {e}") from e

            if not raw:
                break

            line = raw.decode('utf-8', errors='surrogateescape').rstrip('\r\n')
            logger.debug(f"Read line: {line}")

            if not self.framed:
                responses.append(Response(0, line))
                continue

            responses.append(Response(reply_code(line), line))
            if closes_reply(line):
                break

        return responses
