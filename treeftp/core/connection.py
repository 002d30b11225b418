import logging

from .channel import Channel
from .commands import Command, Verb
from .errors import CommandFlushFailed, CommandTransmitError, CommandWriteFailed
from .parser import Responses

logger = logging.getLogger("treeftp.core.connection")


class CommandChannel(Channel):
    """The control connection: sends commands and reads their replies."""

    def __init__(self, endpoint, timeout=None, policy=None):
        super().__init__(endpoint, timeout, policy)
        self.greeting: Responses = []

    def connect(self):
        super().connect()
        self.greeting = self.read_responses()
        for _, line in self.greeting:
            logger.info(f"Server greeting: {line}")

    def _after_reconnect(self):
        discarded = self.read_responses()
        logger.debug(f"Discarded greeting after reconnect: {discarded}")

    def _transmit(self, payload: bytes):
        if self._writer is None:
            raise CommandWriteFailed(f"No connection to {self.endpoint}")
        try:
            self._writer.write(payload)
        except OSError as e:
            raise CommandWriteFailed(f"Failed to write command to {self.endpoint}: {e}") from e
        try:
            self._writer.flush()
        except OSError as e:
            raise CommandFlushFailed(f"Failed to flush command to {self.endpoint}: {e}") from e

    def send_command(self, command: Command) -> Responses:
        """
        Sends one command and reads its reply.

        A failed write is retried once on a fresh connection; a second
        failure propagates. LIST replies arrive in two bursts (preliminary
        1xx, then completion), so a second read follows a 1xx reply unless
        the first read had to reconnect.
        """
        payload = command.to_wire()
        logger.debug(f"→ SEND: {command}")

        try:
            self._transmit(payload)
        except CommandTransmitError as e:
            logger.error(f"Error writing command: {e}. Attempting to reconnect...")
            self.reconnect()
            self._transmit(payload)

        before = self.reconnect_count
        responses = self.read_responses()

        if command.verb is Verb.LIST and self.reconnect_count == before and _is_preliminary(responses):
            responses.extend(self.read_responses())

        logger.debug(f"← RECV: {[line for _, line in responses]}")
        return responses


def _is_preliminary(responses: Responses) -> bool:
    return bool(responses) and 100 <= responses[-1].code < 200
