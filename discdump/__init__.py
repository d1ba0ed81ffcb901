"""discdump package root.

Command-line builders/parsers for optical-disc dumping tools and the log
scanners that turn their output into submission metadata. Keep this file
small and explicit so `import discdump` stays lightweight.
"""

from . import config
from .tools import create_parameters, tools

__version__ = "0.3.0"

__all__ = [
    "config",
    "create_parameters",
    "tools",
]
