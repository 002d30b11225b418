__version__ = "0.1.0"

from .core import FtpClient, Strategy
from .fs import Directory, File, render_json, render_tree

__all__ = [
    "FtpClient",
    "Strategy",
    "Directory",
    "File",
    "render_tree",
    "render_json",
    "__version__",
]
