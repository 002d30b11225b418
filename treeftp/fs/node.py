"""
In-memory tree produced by a crawl.

A Directory keeps its children in LIST order. Every node is created for one
listing line and owned by exactly one parent.
"""

from dataclasses import dataclass, field
from typing import List, Union

# Fields 0-7 of an `ls -l` line: mode, links, owner, group, size, month, day, time/year
NAME_FIELD = 8


@dataclass
class File:
    name: str


@dataclass
class Directory:
    name: str
    nodes: List["Node"] = field(default_factory=list)

    def add(self, node: "Node"):
        self.nodes.append(node)

    def to_string(self, indent: str = "") -> str:
        """Box-drawing rendering of the children, one line per node."""
        lines = []
        for i, node in enumerate(self.nodes):
            is_last = i == len(self.nodes) - 1
            prefix = "└── " if is_last else "├── "
            lines.append(f"{indent}{prefix}{node.name}\n")
            if isinstance(node, Directory):
                lines.append(node.to_string(indent + ("    " if is_last else "│    ")))
        return "".join(lines)

    def count(self) -> int:
        """Number of nodes below this directory."""
        return sum(1 + (node.count() if isinstance(node, Directory) else 0) for node in self.nodes)


Node = Union[Directory, File]


def is_directory(line: str) -> bool:
    return line[:1] == 'd'


def parse_name(line: str) -> str:
    fields = line.split()
    if len(fields) <= NAME_FIELD:
        return ""
    return " ".join(fields[NAME_FIELD:])


def node_from_listing(line: str) -> Node:
    name = parse_name(line)
    return Directory(name) if is_directory(line) else File(name)
