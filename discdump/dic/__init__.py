"""DiscImageCreator command lines and log scanners."""

from .parameters import DicParameters

__all__ = ["DicParameters"]
