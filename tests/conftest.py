import socket

import pytest

from treeftp.config import ReconnectPolicy

from .fake_server import FakeFtpServer

TREE = {
    "pub": {
        "docs": {
            "guide.txt": None,
            "deep": {"bottom.txt": None},
        },
        "readme.md": None,
    },
    "incoming": {},
    "notes.txt": None,
    "my files": {"a b.txt": None},
}


@pytest.fixture
def fast_policy():
    return ReconnectPolicy(settle=0, interval=0.05, budget=2.0)


@pytest.fixture
def tree():
    return TREE


@pytest.fixture
def server(tree):
    with FakeFtpServer(tree) as srv:
        yield srv


@pytest.fixture
def closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
