"""Error hierarchy for the register machine.

Building errors (UnknownRegister, InvalidOperand, AssemblySyntaxError) are
raised while a program is authored. Execution errors (UnresolvedLabel,
StepLimitExceeded) are raised from Engine.run and abort the run.
"""

from typing import Optional


class MachineError(Exception):
    """Base class for every error raised by regmachine.

    Attributes:
        result: Partial ExecutionResult when raised from Engine.execute
    """
    result = None


class UnknownRegister(MachineError, LookupError):
    """An identifier in a register position is not AX, BX, CX or DX."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown register: {name!r} (expected one of AX, BX, CX, DX)")


class InvalidOperand(MachineError, ValueError):
    """Operand kind or count does not match the mnemonic's shape."""


class UnresolvedLabel(MachineError, LookupError):
    """A jump executed with a target name missing from the label table."""

    def __init__(self, name: str, pc: Optional[int] = None):
        self.name = name
        self.pc = pc
        where = f" at pc={pc}" if pc is not None else ""
        super().__init__(f"Unresolved label: {name!r}{where}")


class StepLimitExceeded(MachineError, RuntimeError):
    """The opt-in step limit of an Engine was reached before termination."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Max steps ({limit}) exceeded")


class AssemblySyntaxError(MachineError, ValueError):
    """Raised on malformed assembly source."""

    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)
