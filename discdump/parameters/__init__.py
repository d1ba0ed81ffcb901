from .base import BaseParameters, FlagSpec, ParameterState, ParsePolicy, Slot, ValueKind, tokenize
from .registry import FlagRegistry

__all__ = [
    "BaseParameters",
    "FlagRegistry",
    "FlagSpec",
    "ParameterState",
    "ParsePolicy",
    "Slot",
    "ValueKind",
    "tokenize",
]
