from typing import List

from .channel import Channel


class DataChannel(Channel):
    """
    A passive mode data connection, opened for a single listing.

    Data streams have no reply framing: every line comes back with code 0
    and reading stops at end of stream.
    """

    framed = False

    def read_listing(self) -> List[str]:
        return [line for _, line in self.read_responses()]
