"""Data model for register-machine programs.

Types:
    Register: the closed set of four registers (AX, BX, CX, DX)
    Comparison: tri-state flag set by COMPARE (LESS, EQUAL, GREATER)
    Opcode: the closed mnemonic set
    RegisterRef, Immediate, LabelRef: tagged operands
    Instruction: opcode plus ordered operands
    Program: immutable instruction sequence plus label table

A LabelRef carries only a name. Its position is looked up in the owning
Program's label table every time a jump executes, never cached on the operand.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from .errors import UnknownRegister, UnresolvedLabel


class Register(Enum):
    """The four general-purpose registers, in result order."""
    AX = "AX"
    BX = "BX"
    CX = "CX"
    DX = "DX"

    @classmethod
    def from_name(cls, name: str) -> "Register":
        """Look up a register by name (case insensitive).

        Raises:
            UnknownRegister: If name is not one of the four registers
        """
        if isinstance(name, str):
            try:
                return cls[name.strip().upper()]
            except KeyError:
                pass
        raise UnknownRegister(name)

    @classmethod
    def is_register_name(cls, name: str) -> bool:
        return isinstance(name, str) and name.strip().upper() in cls.__members__


class Comparison(Enum):
    """Result of the most recent COMPARE."""
    LESS = "LESS"
    EQUAL = "EQUAL"
    GREATER = "GREATER"

    @classmethod
    def of(cls, a: int, b: int) -> "Comparison":
        if a < b:
            return cls.LESS
        if a > b:
            return cls.GREATER
        return cls.EQUAL


class Opcode(Enum):
    MOVE = "MOVE"
    COMPARE = "COMPARE"
    INCREMENT = "INCREMENT"
    DECREMENT = "DECREMENT"
    JUMP = "JUMP"
    JUMP_EQ = "JUMP_EQ"
    JUMP_NE = "JUMP_NE"
    JUMP_LT = "JUMP_LT"
    JUMP_LE = "JUMP_LE"
    JUMP_GT = "JUMP_GT"
    JUMP_GE = "JUMP_GE"

    @classmethod
    def from_mnemonic(cls, text: str) -> Optional["Opcode"]:
        """Map a canonical name or short form (MOV, JGE, ...) to an Opcode.

        Returns:
            The Opcode, or None if text is not a mnemonic
        """
        key = text.strip().upper()
        if key in cls.__members__:
            return cls[key]
        return SHORT_MNEMONICS.get(key)


SHORT_MNEMONICS: Dict[str, Opcode] = {
    "MOV": Opcode.MOVE,
    "CMP": Opcode.COMPARE,
    "INC": Opcode.INCREMENT,
    "DEC": Opcode.DECREMENT,
    "JMP": Opcode.JUMP,
    "JE": Opcode.JUMP_EQ,
    "JNE": Opcode.JUMP_NE,
    "JL": Opcode.JUMP_LT,
    "JLE": Opcode.JUMP_LE,
    "JG": Opcode.JUMP_GT,
    "JGE": Opcode.JUMP_GE,
}


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class RegisterRef:
    register: Register

    def __str__(self) -> str:
        return self.register.value


@dataclass(frozen=True)
class Immediate:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class LabelRef:
    """Jump target, by name only."""
    name: str

    def __str__(self) -> str:
        return self.name


Operand = Union[RegisterRef, Immediate, LabelRef]


# =============================================================================
# Instructions and programs
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """A single decoded instruction.

    Attributes:
        opcode: Operation kind
        operands: Operands in declaration order (defaults already filled in)
    """
    opcode: Opcode
    operands: Tuple[Operand, ...] = ()

    def __str__(self) -> str:
        if not self.operands:
            return self.opcode.value
        return f"{self.opcode.value} {', '.join(str(op) for op in self.operands)}"


@dataclass(frozen=True)
class Program:
    """Immutable instruction sequence with its label table.

    Attributes:
        instructions: Instructions, 0-indexed by declaration order
        labels: Label name -> index of the instruction it marks
    """
    instructions: Tuple[Instruction, ...] = ()
    labels: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze whatever the caller handed in
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def __hash__(self) -> int:
        return hash((self.instructions, frozenset(self.labels.items())))

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def resolve_label(self, name: str, pc: Optional[int] = None) -> int:
        """Look up the instruction index a label name maps to.

        Args:
            name: Label name
            pc: Address of the jump doing the lookup (for the error message)

        Raises:
            UnresolvedLabel: If no label with that name was declared
        """
        try:
            return self.labels[name]
        except KeyError:
            raise UnresolvedLabel(name, pc) from None

    def listing(self) -> str:
        """Human-readable listing with label markers."""
        by_index: Dict[int, list] = {}
        for name, index in self.labels.items():
            by_index.setdefault(index, []).append(name)

        lines = []
        for index, instruction in enumerate(self.instructions):
            for name in by_index.pop(index, []):
                lines.append(f"{name}:")
            lines.append(f"  {index:4d}  {instruction}")
        # Labels pointing at or past the end of the program
        for index in sorted(by_index):
            for name in by_index[index]:
                lines.append(f"{name}:")
        return "\n".join(lines)
