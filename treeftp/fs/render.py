import json
from typing import Any, Dict

from .node import Directory, Node


def render_tree(root: Node) -> str:
    """Indented tree rooted at a `.` line."""
    if isinstance(root, Directory):
        return f".\n{root.to_string('')}"
    return f".\n└── {root.name}\n"


def to_document(node: Node) -> Dict[str, Any]:
    """Directories map child names to children; a file is its name field."""
    if isinstance(node, Directory):
        return {child.name: to_document(child) for child in node.nodes}
    return {"name": node.name}


def render_json(root: Node, indent: int = 2) -> str:
    return json.dumps(to_document(root), indent=indent, ensure_ascii=False)


def printable(text: str) -> str:
    """Shows bytes of names that were not valid UTF-8 as U+FFFD for display."""
    return text.encode('utf-8', errors='surrogateescape').decode('utf-8', errors='replace')
