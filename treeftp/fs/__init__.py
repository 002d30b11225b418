from .node import Directory, File, Node, is_directory, node_from_listing, parse_name
from .render import printable, render_json, render_tree, to_document

__all__ = [
    "Directory",
    "File",
    "Node",
    "is_directory",
    "parse_name",
    "node_from_listing",
    "render_tree",
    "render_json",
    "to_document",
    "printable",
]
