"""Redumper command lines and log scanners."""

from .parameters import RedumperParameters

__all__ = ["RedumperParameters"]
