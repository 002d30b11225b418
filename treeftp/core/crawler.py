"""
Depth-bounded crawl of the remote tree.

Both strategies walk the server with CWD / LIST / CDUP over a single control
connection. A crawl that notices a silent reconnect throws away whatever it
has built and starts over, so callers only ever see complete trees.
"""

import logging
from collections import deque
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from ..fs.node import Directory, node_from_listing
from .errors import SessionReplaced

logger = logging.getLogger("treeftp.core.crawler")

# Reply codes at or above this mean the server refused the CWD
REFUSED = 500

_NOT_DESCENDABLE = ("", ".", "..")


class Strategy(str, Enum):
    DFS = "dfs"
    BFS = "bfs"


class _Frame(NamedTuple):
    index: int  # position of the directory in the arena
    path: Tuple[str, ...]  # names from the crawl root down to the directory
    listing: List[str]
    depth: int


class TreeCrawler:
    def __init__(self, client):
        self.client = client
        self.restarts = 0

    def crawl(self, depth: int = 1, strategy=Strategy.DFS) -> Directory:
        """
        Crawls the tree below the login directory.

        Listings of directories up to `depth` levels below the root listing
        are fetched; deeper directories appear with no children.
        """
        if depth < 0:
            raise ValueError("Depth cannot be negative")
        strategy = Strategy(strategy)

        while True:
            try:
                root = self._crawl_once(depth, strategy)
            except SessionReplaced:
                self.restarts += 1
                logger.warning(f"Connection replaced during crawl, restarting (restart #{self.restarts})")
                self.client.acknowledge_reconnect()
                continue

            logger.info(f"Crawl finished: {root.count()} nodes, depth={depth}, strategy={strategy.value}")
            return root

    def _crawl_once(self, depth: int, strategy: Strategy) -> Directory:
        username, password = self.client.credentials or ("anonymous", "anonymous")
        self.client.authenticate(username, password)
        self.client.retrieve_server_info()

        root = Directory(".")
        listing = self.client.list_dir()
        if strategy is Strategy.DFS:
            self._dfs(root, listing, depth)
        else:
            self._bfs(root, listing, depth)
        return root

    # ---------------- depth first ----------------
    def _dfs(self, directory: Directory, listing: List[str], depth: int):
        for line in listing:
            node = node_from_listing(line)
            if isinstance(node, Directory) and depth > 0 and _descendable(node.name):
                self._descend(node, depth)
            directory.add(node)

    def _descend(self, directory: Directory, depth: int):
        code = self.client.change_directory(directory.name)
        if code >= REFUSED:
            logger.warning(f"CWD {directory.name} refused ({code}), not descending")
            return
        listing = self.client.list_dir()
        self._dfs(directory, listing, depth - 1)
        self.client.parent_directory()

    # ---------------- breadth first ----------------
    def _bfs(self, root: Directory, listing: List[str], depth: int):
        arena: List[Directory] = [root]
        queue = deque([_Frame(0, (), listing, depth)])

        while queue:
            frame = queue.popleft()
            directory = arena[frame.index]

            pending = []
            for line in frame.listing:
                node = node_from_listing(line)
                directory.add(node)
                if isinstance(node, Directory) and frame.depth > 0 and _descendable(node.name):
                    arena.append(node)
                    pending.append(len(arena) - 1)

            if pending:
                self._expand(frame, pending, arena, queue)

    def _expand(self, frame: _Frame, pending: List[int], arena: List[Directory], queue: deque):
        """Fetches the listing of each pending child and queues it one level down."""
        entered = self._enter(frame.path)
        if entered is None:
            return

        for index in pending:
            name = arena[index].name
            code = self.client.change_directory(name)
            if code >= REFUSED:
                logger.warning(f"CWD {name} refused ({code}), not descending")
                continue
            listing = self.client.list_dir()
            self.client.parent_directory()
            queue.append(_Frame(index, frame.path + (name,), listing, frame.depth - 1))

        self._leave(entered)

    def _enter(self, path: Tuple[str, ...]) -> Optional[int]:
        for entered, name in enumerate(path):
            code = self.client.change_directory(name)
            if code >= REFUSED:
                logger.warning(f"CWD {name} refused ({code}) while re-entering {'/'.join(path)}")
                self._leave(entered)
                return None
        return len(path)

    def _leave(self, levels: int):
        for _ in range(levels):
            self.client.parent_directory()


def _descendable(name: str) -> bool:
    return name not in _NOT_DESCENDABLE
