from __future__ import annotations

from typing import Optional

from .common.exceptions import UnsupportedProgramError
from .common.types import InternalProgram, MediaType, RedumpSystem
from .core.config_manager import Options
from .parameters.base import BaseParameters


class ToolRegistry:
    """Central registry of the dumping programs with a known grammar."""

    def __init__(self):
        self._tools: dict[InternalProgram, type[BaseParameters]] = {}
        self._register_defaults()

    def _register_defaults(self):
        from .dic.parameters import DicParameters
        from .redumper.parameters import RedumperParameters

        for cls in (DicParameters, RedumperParameters):
            self.register(cls)

    def register(self, cls: type[BaseParameters]):
        self._tools[cls.program] = cls

    def get(self, program: InternalProgram | str) -> type[BaseParameters]:
        if isinstance(program, str):
            try:
                program = InternalProgram.from_name(program)
            except ValueError:
                raise UnsupportedProgramError(program) from None
        cls = self._tools.get(program)
        if cls is None:
            raise UnsupportedProgramError(program.name)
        return cls

    def list_programs(self) -> list[InternalProgram]:
        return sorted(self._tools, key=lambda p: p.name)

    def create(
        self,
        program: InternalProgram | str,
        raw: Optional[str] = None,
        system: Optional[RedumpSystem] = None,
        media_type: Optional[MediaType] = None,
        drive: Optional[str] = None,
        filename: Optional[str] = None,
        speed: Optional[int] = None,
        options: Optional[Options] = None,
    ) -> BaseParameters:
        """Parameters for ``program``, parsed from ``raw`` or built from defaults.

        Raises:
            UnsupportedProgramError: no grammar for ``program``.
            ParseError: ``raw`` is given and is not a valid command line.
        """
        cls = self.get(program)
        if raw is not None:
            return cls.from_string(raw, system, media_type)
        return cls.from_fields(system, media_type, drive, filename, speed, options)


# Singleton
tools = ToolRegistry()


def create_parameters(program: InternalProgram | str, raw: Optional[str] = None, **kwargs) -> BaseParameters:
    return tools.create(program, raw, **kwargs)
