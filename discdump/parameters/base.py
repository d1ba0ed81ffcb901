"""Shared contract for dumping-tool command lines.

A ``BaseParameters`` subclass describes one tool: its command verbs, its
flag table (``FlagSpec`` per flag, declared in serialization order), its
positional grammar and its default policy. This module owns the parts that
are the same for every tool: the parameter state, tokenizing, the generic
flag emission loop and the generic flag value consumption loop.
"""

from __future__ import annotations

import enum
import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Iterator, Mapping, Optional, Sequence

from ..common.exceptions import ParseError, SerializationError
from ..common.models import SubmissionInfo
from ..common.types import InternalProgram, MediaType, RedumpSystem
from ..common.validation import is_valid_byte, is_valid_int, parse_int
from ..core.config_manager import Options
from .registry import FlagRegistry

logger = logging.getLogger(__name__)


# ============================================================================
# FLAG DECLARATIONS
# ============================================================================

class ValueKind(enum.Enum):
    INT = "int"
    BYTE = "byte"
    HEX_BYTE = "hex_byte"
    STRING = "string"


class ParsePolicy(enum.Enum):
    """What the parser does with a missing or invalid flag value.

    TRUNCATE: stop consuming values, the flag stays set with what was read.
    FAIL: the whole parse fails.
    DISCARD: the flag is left unset and parsing continues.
    A missing *required* value leaves the flag unset under TRUNCATE too.
    """

    TRUNCATE = "truncate"
    FAIL = "fail"
    DISCARD = "discard"


@dataclass(frozen=True, slots=True)
class Slot:
    """One value position of a flag.

    ``lower``/``upper`` bound what the parser accepts; ``emit_lower`` and
    ``emit_upper`` (default: the same) bound what the serializer will write.
    """

    kind: ValueKind = ValueKind.INT
    lower: Optional[int] = None
    upper: Optional[int] = None
    emit_lower: Optional[int] = None
    emit_upper: Optional[int] = None
    choices: tuple[str, ...] = ()

    def read(self, token: str) -> Any:
        """Convert a raw token, or return None when it is not acceptable."""
        if self.kind is ValueKind.STRING:
            if self.choices and token not in self.choices:
                return None
            return token
        if self.kind is ValueKind.HEX_BYTE:
            text = token[2:] if token.lower().startswith("0x") else token
            return int(text, 16) if is_valid_byte(text, base=16) else None
        if self.kind is ValueKind.BYTE:
            return int(token) if is_valid_byte(token) else None
        if is_valid_int(token, self.lower, self.upper):
            return parse_int(token)
        return None

    def accepts(self, value: Any) -> bool:
        """Serializer-side bounds check."""
        if self.kind is ValueKind.STRING:
            return isinstance(value, str) and (not self.choices or value in self.choices)
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        if self.kind in (ValueKind.BYTE, ValueKind.HEX_BYTE):
            return 0 <= value <= 255
        lower = self.emit_lower if self.emit_lower is not None else self.lower
        upper = self.emit_upper if self.emit_upper is not None else self.upper
        if lower is not None and value < lower:
            return False
        if upper is not None and value > upper:
            return False
        return True

    def render(self, value: Any) -> str:
        if self.kind is ValueKind.HEX_BYTE:
            return f"{value:x}"
        return str(value)


@dataclass(frozen=True, slots=True)
class FlagSpec:
    slots: tuple[Slot, ...] = ()
    required: int = 0
    policy: ParsePolicy = ParsePolicy.TRUNCATE
    aliases: tuple[str, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.slots)


# ============================================================================
# PARAMETER STATE
# ============================================================================

class FlagStates(dict):
    """Flag -> True/False/None mapping where absent flags read as None (unset)."""

    def __missing__(self, key):
        return None

    def is_set(self, flag) -> bool:
        return self.get(flag) is True


@dataclass
class ParameterState:
    """Structured form of one dumping-tool invocation."""

    command: Optional[enum.Enum] = None
    drive: Optional[str] = None
    filename: Optional[str] = None
    secondary_filename: Optional[str] = None
    speed: Optional[int] = None
    start_lba: Optional[int] = None
    end_lba: Optional[int] = None
    extra_lbas: list[int] = field(default_factory=list)
    flags: FlagStates = field(default_factory=FlagStates)
    values: dict[enum.Enum, list[Any]] = field(default_factory=dict)
    arities: Mapping[enum.Enum, int] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        if not self.values:
            self.values = self._empty_values()

    def _empty_values(self) -> dict[enum.Enum, list[Any]]:
        return {flag: [None] * arity for flag, arity in self.arities.items() if arity}

    def reset(self) -> None:
        """Restore every field to its zero value, slot lists included."""
        self.command = None
        self.drive = None
        self.filename = None
        self.secondary_filename = None
        self.speed = None
        self.start_lba = None
        self.end_lba = None
        self.extra_lbas = []
        self.flags = FlagStates()
        self.values = self._empty_values()


# ============================================================================
# TOKENIZING
# ============================================================================

def _split(text: str) -> list[str]:
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.quotes = '"'
    lexer.escape = ""
    return list(lexer)


def tokenize(raw: str) -> list[str]:
    """Split a command line on whitespace, keeping double-quoted spans whole.

    Quotes are removed and there is no escape character. An unmatched quote
    opens a span that runs to the end of the input; that span is glued to
    any characters directly before the quote, like a closed quote would be.
    """
    text = raw.strip()
    if text.count('"') % 2 == 0:
        return _split(text)

    cut = text.rfind('"')
    head, tail = text[:cut], text[cut + 1:]
    tokens = _split(head)
    if tokens and head and not head[-1].isspace():
        tokens[-1] += tail
    else:
        tokens.append(tail)
    return tokens


def quote_token(token: str) -> str:
    if any(c.isspace() for c in token) and not (token.startswith('"') and token.endswith('"')):
        return f'"{token}"'
    return token


def check_unquoted(token: str, flag: Optional[str] = None) -> str:
    """Return ``token``, refusing one that holds a double quote.

    The tokenizer has no escape character, so such a token cannot be
    written in a form that reads back the same.
    """
    if '"' in token:
        raise SerializationError(f"double quote in {token!r}", flag=flag)
    return token


# ============================================================================
# BASE PARAMETERS
# ============================================================================

class BaseParameters(ABC):
    """One dumping-tool invocation: state plus grammar."""

    program: ClassVar[InternalProgram]
    command_type: ClassVar[type[enum.Enum]]
    flag_type: ClassVar[type[enum.Enum]]
    flag_specs: ClassVar[Mapping[Any, FlagSpec]]
    default_registry: ClassVar[FlagRegistry]

    def __init__(
        self,
        system: Optional[RedumpSystem] = None,
        media_type: Optional[MediaType] = None,
        registry: Optional[FlagRegistry] = None,
    ):
        self.system = system
        self.media_type = media_type
        self.registry = registry or self.default_registry
        self.state = ParameterState(
            arities={flag: spec.arity for flag, spec in self.flag_specs.items()}
        )
        self._token_map = self._build_token_map()

    @classmethod
    def _build_token_map(cls) -> dict[str, Any]:
        tokens: dict[str, Any] = {}
        for flag in cls.flag_type:
            tokens[flag.value] = flag
            for alias in cls.flag_specs[flag].aliases:
                tokens[alias] = flag
        return tokens

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_fields(
        cls,
        system: Optional[RedumpSystem],
        media_type: Optional[MediaType],
        drive: Optional[str],
        filename: Optional[str],
        speed: Optional[int],
        options: Optional[Options] = None,
        registry: Optional[FlagRegistry] = None,
    ):
        """Build a ready-to-serialize state using the tool's default policy.

        Never raises for an unsupported system/media pair; the command is
        simply left unset and serialization fails later.
        """
        params = cls(system, media_type, registry)
        params.set_default_parameters(drive, filename, speed, options or Options())
        return params

    @classmethod
    def from_string(
        cls,
        raw: str,
        system: Optional[RedumpSystem] = None,
        media_type: Optional[MediaType] = None,
        registry: Optional[FlagRegistry] = None,
    ):
        params = cls(system, media_type, registry)
        params.parse(raw)
        return params

    def reset(self) -> None:
        self.state.reset()

    # ------------------------------------------------------------------
    # Flag access
    # ------------------------------------------------------------------

    def is_flag_supported(self, flag) -> bool:
        return self.registry.supports(self.state.command, flag)

    def is_flag_token(self, token: str) -> bool:
        name, _ = self._split_token(token)
        return name in self._token_map

    def __getitem__(self, flag) -> Optional[bool]:
        return self.state.flags[flag]

    def __setitem__(self, flag, enabled: Optional[bool]) -> None:
        self.state.flags[flag] = enabled

    def value(self, flag, slot: int = 0) -> Any:
        values = self.state.values.get(flag)
        if not values or slot >= len(values):
            return None
        return values[slot]

    def values(self, flag) -> list[Any]:
        return list(self.state.values.get(flag, []))

    def set_value(self, flag, *slots: Any) -> None:
        """Store slot values for ``flag``; trailing slots become None."""
        arity = self.flag_specs[flag].arity
        if len(slots) > arity:
            raise ValueError(f"{flag.value} takes at most {arity} values")
        self.state.values[flag] = list(slots) + [None] * (arity - len(slots))

    # ------------------------------------------------------------------
    # Serializer
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Render the state as a command line.

        Raises:
            SerializationError: when a required field is missing or a value
                is out of bounds. Nothing is returned in that case.
        """
        tokens = self._command_tokens()
        tokens.extend(self._positional_tokens())

        for flag in self.flag_type:
            if not self.is_flag_supported(flag) or self.state.flags[flag] is not True:
                continue
            if not self._should_emit(flag):
                continue
            tokens.extend(self._render_flag(flag, self._emit_values(flag)))

        return " ".join(quote_token(t) for t in tokens)

    def generate_parameters(self) -> Optional[str]:
        """Non-raising ``serialize``: None when the state is not serializable."""
        try:
            return self.serialize()
        except SerializationError as e:
            logger.debug("%s parameters not generated: %s", self.program.long_name, e)
            return None

    def _command_tokens(self) -> list[str]:
        if self.state.command is None:
            raise SerializationError("command is not set")
        return [self.state.command.value]

    def _should_emit(self, flag) -> bool:
        return True

    def _slots_for(self, flag) -> Sequence[Slot]:
        """Slots that apply to ``flag`` under the current command."""
        return self.flag_specs[flag].slots

    def _slot_limit(self, flag, values: Sequence[Any]) -> int:
        """Number of leading slots eligible for emission."""
        return len(self._slots_for(flag))

    def _emit_values(self, flag) -> list[str]:
        slots = self._slots_for(flag)
        if not slots:
            return []
        values = self.state.values.get(flag) or [None] * len(slots)
        required = min(self.flag_specs[flag].required, len(slots))
        rendered: list[str] = []
        for index in range(self._slot_limit(flag, values)):
            value = values[index] if index < len(values) else None
            if value is None:
                if index < required:
                    raise SerializationError("missing required value", flag=flag.value)
                # a gap ends emission for this flag
                break
            if not slots[index].accepts(value):
                raise SerializationError(f"value {value!r} out of bounds", flag=flag.value)
            rendered.append(check_unquoted(slots[index].render(value), flag.value))
        return rendered

    def _render_flag(self, flag, rendered_values: list[str]) -> list[str]:
        return [flag.value, *rendered_values]

    # ------------------------------------------------------------------
    # Parser
    # ------------------------------------------------------------------

    def parse(self, raw: str) -> None:
        """Reset the state and fill it from ``raw``.

        Raises:
            ParseError: on empty input, an unknown command, a positional
                grammar violation, or an invalid value of a FAIL-policy flag.
        """
        self.reset()
        if raw is None or not raw.strip():
            raise ParseError("empty command line")

        parts = tokenize(raw)
        index = self._parse_positionals(parts)
        if index is None:
            return

        i = index
        while i < len(parts):
            i = self._parse_flag_at(parts, i) + 1

    def load(self, raw: str) -> bool:
        """Non-raising ``parse``; False leaves the command unset."""
        try:
            self.parse(raw)
            return True
        except ParseError as e:
            logger.debug("Rejected %s command line %r: %s", self.program.long_name, raw, e)
            self.state.command = None
            return False

    def _split_token(self, token: str) -> tuple[str, Optional[str]]:
        """Split an inline ``flag=value`` token; tools without it return the token."""
        return token, None

    def _parse_flag_at(self, parts: list[str], i: int) -> int:
        """Handle the token at ``i``; return the index of the last token used."""
        name, inline = self._split_token(parts[i])
        flag = self._token_map.get(name)
        if flag is None or not self.is_flag_supported(flag):
            logger.debug("Skipping unrecognized token %r", parts[i])
            return i
        if inline is not None and not self._slots_for(flag):
            logger.debug("Skipping value on switch %r", parts[i])
            return i
        return self._consume_values(parts, i, flag, inline)

    def _candidates(self, parts: list[str], i: int, inline: Optional[str]) -> Iterator[tuple[str, int]]:
        """Yield (token, index of last token consumed if accepted)."""
        if inline is not None:
            yield inline, i
            return
        j = i + 1
        while j < len(parts) and not self.is_flag_token(parts[j]):
            yield parts[j], j
            j += 1

    def _consume_values(self, parts: list[str], i: int, flag, inline: Optional[str] = None) -> int:
        spec = self.flag_specs[flag]
        slots = self._slots_for(flag)
        values: list[Any] = [None] * spec.arity
        last = i
        count = 0

        candidates = self._candidates(parts, i, inline)
        for slot in slots:
            token, position = next(candidates, (None, None))
            if token is None:
                break
            value = slot.read(token)
            if value is None:
                if spec.policy is ParsePolicy.FAIL:
                    raise ParseError(f"invalid value for {flag.value}", token)
                if spec.policy is ParsePolicy.DISCARD:
                    logger.debug("Discarding %s: invalid value %r", flag.value, token)
                    return last
                break
            values[count] = value
            count += 1
            last = position

        required = min(spec.required, len(slots))
        if count < required:
            if spec.policy is ParsePolicy.FAIL:
                raise ParseError(f"{flag.value} requires {required} value(s)", parts[i])
            logger.debug("Ignoring %s: missing required value", flag.value)
            return last

        self.state.flags[flag] = True
        if spec.arity:
            self.state.values[flag] = values
        return last

    # ------------------------------------------------------------------
    # Tool specifics
    # ------------------------------------------------------------------

    @abstractmethod
    def _positional_tokens(self) -> list[str]:
        """Positional tokens after the command; raise SerializationError if incomplete."""

    @abstractmethod
    def _parse_positionals(self, parts: list[str]) -> Optional[int]:
        """Set command and positional fields; return the first flag index or None."""

    @abstractmethod
    def set_default_parameters(
        self,
        drive: Optional[str],
        filename: Optional[str],
        speed: Optional[int],
        options: Options,
    ) -> None:
        """Apply the tool's default policy for ``self.system``/``self.media_type``."""

    @abstractmethod
    def is_dumping_command(self) -> bool: ...

    @abstractmethod
    def get_media_type(self) -> Optional[MediaType]: ...

    @abstractmethod
    def get_default_extension(self, media_type: Optional[MediaType]) -> Optional[str]: ...

    @abstractmethod
    def get_log_file_paths(self, base_path: Path | str) -> list[Path]: ...

    @abstractmethod
    def check_all_output_files_exist(
        self, base_path: Path | str, pre_check: bool = False
    ) -> tuple[bool, list[str]]: ...

    @abstractmethod
    def generate_submission_info(
        self,
        info: SubmissionInfo,
        base_path: Path | str,
        options: Optional[Options] = None,
        drive_path: Optional[Path] = None,
        include_artifacts: bool = False,
    ) -> SubmissionInfo: ...

    # ------------------------------------------------------------------
    # Generic dumping information
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def input_path(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def output_path(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def speed(self) -> Optional[int]: ...
