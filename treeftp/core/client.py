import logging
from typing import Dict, List, Optional, Tuple

from ..config import DEFAULT_TIMEOUT, ReconnectPolicy
from . import commands
from .commands import Command
from .connection import CommandChannel
from .crawler import Strategy, TreeCrawler
from .data_connection import DataChannel
from .errors import NoResponseReceived, SessionReplaced
from .parser import Endpoint, Responses, last_code, negotiate, reply_type

logger = logging.getLogger("treeftp.core.client")

# Sends of PASV/EPSV before giving up on an empty or blank reply
PASSIVE_ATTEMPTS = 3

# LIST reply codes from here on carry no listing on the data channel
LIST_REFUSED = 400


class FtpClient:
    """
    Drives one FTP session: authentication, server probing, passive mode
    negotiation and directory listing.

    The client is the only owner of its command channel and of the current
    data channel. Whenever either reports a silent reconnect, operations
    raise `SessionReplaced`; the flag is cleared with `acknowledge_reconnect()`.
    """

    def __init__(self, endpoint: Tuple[str, int], extended: bool = False,
                 timeout: float = DEFAULT_TIMEOUT, policy: Optional[ReconnectPolicy] = None):
        self.endpoint = Endpoint(*endpoint)
        self.extended = extended
        self.timeout = timeout
        self.policy = policy or ReconnectPolicy()
        self.credentials: Optional[Tuple[str, str]] = None
        self.server_info: Dict[str, object] = {}
        self.data: Optional[DataChannel] = None
        self.data_endpoint: Optional[Endpoint] = None

        self.command = CommandChannel(self.endpoint, timeout, self.policy)
        self.command.connect()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self._drop_data()
        self.command.close()

    @property
    def greeting(self) -> Responses:
        return self.command.greeting

    # ---------------- session state ----------------
    def _check_session(self):
        if self.command.reconnected or (self.data is not None and self.data.reconnected):
            raise SessionReplaced(self.endpoint)

    def acknowledge_reconnect(self):
        """Clears the reconnect flag after the caller restarted its work."""
        self.command.clear_reconnected()
        self._drop_data()

    def _drop_data(self):
        if self.data is not None:
            self.data.close()
            self.data = None

    def _send(self, command: Command) -> Responses:
        responses = self.command.send_command(command)
        if responses:
            code = last_code(responses)
            logger.debug(f"{command} -> {code} ({reply_type(code)})")
        return responses

    def _execute(self, command: Command) -> Responses:
        responses = self._send(command)
        self._check_session()
        return responses

    def use_credentials(self, username: str, password: str):
        """Stores the login that every crawl pass sends before listing."""
        self.credentials = (username, password)

    # ---------------- commands ----------------
    def authenticate(self, username: str, password: str):
        """
        Sends USER and PASS.

        Reply codes are not interpreted: a rejected login only surfaces
        later, as failing commands.
        """
        logger.info(f"Starting authentication as {username}")
        self.use_credentials(username, password)
        self._execute(commands.user(username))
        self._execute(commands.password(password))
        logger.info("Authentication sequence sent")

    def retrieve_server_info(self) -> Dict[str, object]:
        logger.info("Retrieving server information")
        syst = self._execute(commands.SYST)
        feat = self._execute(commands.FEAT)
        pwd = self._execute(commands.PWD)
        self._execute(commands.transfer_type("I"))

        self.server_info = {
            "system": syst[-1].line if syst else "",
            "features": [line.strip() for code, line in feat if code == 0 and line.strip()],
            "directory": pwd[-1].line if pwd else "",
        }
        logger.info("Server information retrieved")
        return self.server_info

    def passive_mode(self) -> Endpoint:
        """
        Enters PASV or EPSV mode and opens a fresh data channel on the
        negotiated endpoint, replacing the previous one.
        """
        command = commands.EPSV if self.extended else commands.PASV
        attempts = 0
        while True:
            before = self.command.reconnect_count
            responses = self._send(command)
            attempts += 1
            if responses and responses[-1].line.strip():
                break
            if attempts >= PASSIVE_ATTEMPTS:
                raise NoResponseReceived(command)
            if not responses:
                logger.warning(f"No response to {command}, reconnecting before resending")
                # A read cut by a reset has already reconnected
                if self.command.reconnect_count == before:
                    self.command.reconnect()
            else:
                logger.warning(f"Blank reply to {command}, resending")

        self._check_session()

        endpoint = negotiate(responses[-1].line, self.extended, self.command.peer_host, self.data_endpoint)
        self._drop_data()
        data = DataChannel(endpoint, self.timeout, self.policy)
        data.connect()
        self.data = data
        self.data_endpoint = endpoint
        return endpoint

    def list_dir(self) -> List[str]:
        """
        Lists the current remote directory over a new data channel.

        A refused LIST (4xx/5xx, as some servers answer for an empty
        directory) yields no entries and the data channel is not read.
        """
        self.passive_mode()
        code = last_code(self._execute(commands.LIST))
        if code >= LIST_REFUSED:
            logger.warning(f"LIST refused ({code}), treating directory as empty")
            self._drop_data()
            return []
        listing = self.data.read_listing()
        self._check_session()
        self._drop_data()
        logger.debug(f"Listed {len(listing)} entries")
        return listing

    def change_directory(self, path: str) -> int:
        return last_code(self._execute(commands.cwd(path)))

    def parent_directory(self) -> int:
        return last_code(self._execute(commands.CDUP))

    def crawl(self, depth: int = 1, strategy=Strategy.DFS):
        return TreeCrawler(self).crawl(depth, strategy)
