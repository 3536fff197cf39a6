"""regmachine: A minimal two-phase register-machine interpreter.

Programs operate on four integer registers (AX, BX, CX, DX) with a
tri-state comparison flag and label-based jumps.

Architecture:
    BUILDER -> PROGRAM -> ENGINE -> (AX, BX, CX, DX)
       |          |         |
  [authoring] [immutable] [fetch -> registry primitive -> state]

Modules:
    program: Registers, operands, instructions, Program
    builder: ProgramBuilder (authoring surface, label declaration)
    state: MachineState dataclass for immutable execution state
    registry: Opcode primitives (MOVE, COMPARE, JUMP_GT, ...)
    engine: Engine that runs a Program to completion
    assembler: Text assembly front end
    errors: Exception hierarchy
"""

__version__ = "0.1.0"

from .errors import (
    AssemblySyntaxError,
    InvalidOperand,
    MachineError,
    StepLimitExceeded,
    UnknownRegister,
    UnresolvedLabel,
)
from .program import (
    Comparison,
    Immediate,
    Instruction,
    LabelRef,
    Opcode,
    Program,
    Register,
    RegisterRef,
)
from .builder import ProgramBuilder
from .state import MachineState
from .registry import OpcodeRegistry
from .engine import Engine, ExecutionResult, asm
from .assembler import Assembler, parse_program

__all__ = [
    "AssemblySyntaxError",
    "InvalidOperand",
    "MachineError",
    "StepLimitExceeded",
    "UnknownRegister",
    "UnresolvedLabel",
    "Comparison",
    "Immediate",
    "Instruction",
    "LabelRef",
    "Opcode",
    "Program",
    "Register",
    "RegisterRef",
    "ProgramBuilder",
    "MachineState",
    "OpcodeRegistry",
    "Engine",
    "ExecutionResult",
    "asm",
    "Assembler",
    "parse_program",
]
