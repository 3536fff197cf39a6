"""ProgramBuilder: authoring surface for register-machine programs.

The builder turns a sequence of authoring calls into an immutable Program:

    builder = ProgramBuilder()
    builder.mov(builder.ax, 5)
    builder.cmp(builder.ax, 3)
    builder.jg("done")          # forward reference, resolved at jump time
    builder.mov(builder.cx, 0)
    builder.label("done")
    program = builder.finish()

Registers, immediates and labels each get an explicit operand type. An
identifier that is not a register name always becomes a LabelRef, whether
or not the label has been declared yet; the label table is consulted only
when the jump executes.
"""

import logging
from enum import Enum
from typing import Dict, List, Tuple

from .errors import InvalidOperand
from .program import (
    Immediate,
    Instruction,
    LabelRef,
    Opcode,
    Operand,
    Program,
    Register,
    RegisterRef,
)

logger = logging.getLogger(__name__)


class Role(Enum):
    """Position an operand occupies within an instruction."""
    DEST = "register"
    VALUE = "register or immediate"
    TARGET = "label"


# opcode -> (required roles, optional trailing roles with defaults)
OPERAND_SHAPES: Dict[Opcode, Tuple[Tuple[Role, ...], Tuple[Tuple[Role, Operand], ...]]] = {
    Opcode.MOVE: ((Role.DEST, Role.VALUE), ()),
    Opcode.COMPARE: ((Role.DEST, Role.VALUE), ()),
    Opcode.INCREMENT: ((Role.DEST,), ((Role.VALUE, Immediate(1)),)),
    Opcode.DECREMENT: ((Role.DEST,), ((Role.VALUE, Immediate(1)),)),
    Opcode.JUMP: ((Role.TARGET,), ()),
    Opcode.JUMP_EQ: ((Role.TARGET,), ()),
    Opcode.JUMP_NE: ((Role.TARGET,), ()),
    Opcode.JUMP_LT: ((Role.TARGET,), ()),
    Opcode.JUMP_LE: ((Role.TARGET,), ()),
    Opcode.JUMP_GT: ((Role.TARGET,), ()),
    Opcode.JUMP_GE: ((Role.TARGET,), ()),
}

_ROLE_TYPES = {
    Role.DEST: (RegisterRef,),
    Role.VALUE: (RegisterRef, Immediate),
    Role.TARGET: (LabelRef,),
}


class ProgramBuilder:
    """Accumulates instructions and labels into a Program.

    Attributes:
        instructions: Instructions emitted so far
        labels: Label name -> index of the next instruction at declaration time
    """

    def __init__(self):
        self.instructions: List[Instruction] = []
        self.labels: Dict[str, int] = {}

    # =========================================================================
    # Core operations
    # =========================================================================

    def register(self, name: str) -> RegisterRef:
        """Get a RegisterRef for AX, BX, CX or DX.

        Raises:
            UnknownRegister: If name is not one of the four registers
        """
        if isinstance(name, Register):
            return RegisterRef(name)
        return RegisterRef(Register.from_name(name))

    def resolve_identifier(self, name: str) -> Operand:
        """Turn a bare identifier into an operand.

        Register names give a RegisterRef; any other name gives a LabelRef.
        Never fails and never looks at the label table.
        """
        if Register.is_register_name(name):
            return self.register(name)
        return LabelRef(name)

    def declare_label(self, name: str) -> LabelRef:
        """Bind name to the index the next emitted instruction will occupy.

        Redeclaring a name overwrites the earlier binding.

        Returns:
            LabelRef for the declared name
        """
        if not isinstance(name, str) or not name:
            raise InvalidOperand(f"Label name must be a non-empty string, got {name!r}")
        if Register.is_register_name(name):
            raise InvalidOperand(f"Register name cannot be used as a label: {name}")

        position = len(self.instructions)
        previous = self.labels.get(name)
        if previous is not None and previous != position:
            logger.debug("Label %r redeclared: %d -> %d", name, previous, position)
        else:
            logger.debug("Label %r declared at %d", name, position)
        self.labels[name] = position
        return LabelRef(name)

    def emit(self, opcode, *operands) -> Instruction:
        """Append an instruction after checking its operands.

        Args:
            opcode: Opcode or mnemonic string (MOVE, MOV, JUMP_GT, JG, ...)
            *operands: Operands; ints become Immediate, strings in a register
                position must name a register, other strings go through
                resolve_identifier

        Returns:
            The appended Instruction

        Raises:
            InvalidOperand: Unknown mnemonic, wrong arity, or wrong operand kind
            UnknownRegister: A name in a register position is not a register
        """
        opcode = self._coerce_opcode(opcode)
        required, optional = OPERAND_SHAPES[opcode]

        max_arity = len(required) + len(optional)
        if not len(required) <= len(operands) <= max_arity:
            if len(required) == max_arity:
                expected = str(max_arity)
            else:
                expected = f"{len(required)} to {max_arity}"
            raise InvalidOperand(
                f"{opcode.value} takes {expected} operand(s), got {len(operands)}"
            )

        roles = list(required) + [role for role, _ in optional]
        coerced = [
            self.register(op) if role is Role.DEST and isinstance(op, str) else self._coerce_operand(op)
            for role, op in zip(roles, operands)
        ]
        for _role, default in optional[len(coerced) - len(required):]:
            coerced.append(default)

        for position, (role, operand) in enumerate(zip(roles, coerced)):
            if not isinstance(operand, _ROLE_TYPES[role]):
                raise InvalidOperand(
                    f"{opcode.value} operand {position + 1} must be a {role.value}, "
                    f"got {type(operand).__name__} {operand}"
                )

        instruction = Instruction(opcode, tuple(coerced))
        self.instructions.append(instruction)
        return instruction

    def finish(self) -> Program:
        """Snapshot the instructions and label table into an immutable Program."""
        return Program(tuple(self.instructions), dict(self.labels))

    # =========================================================================
    # Authoring DSL
    # =========================================================================

    @property
    def ax(self) -> RegisterRef:
        return RegisterRef(Register.AX)

    @property
    def bx(self) -> RegisterRef:
        return RegisterRef(Register.BX)

    @property
    def cx(self) -> RegisterRef:
        return RegisterRef(Register.CX)

    @property
    def dx(self) -> RegisterRef:
        return RegisterRef(Register.DX)

    def label(self, name: str) -> LabelRef:
        return self.declare_label(name)

    def mov(self, dst, src) -> Instruction:
        return self.emit(Opcode.MOVE, dst, src)

    def cmp(self, a, b) -> Instruction:
        return self.emit(Opcode.COMPARE, a, b)

    def inc(self, dst, amount=None) -> Instruction:
        if amount is None:
            return self.emit(Opcode.INCREMENT, dst)
        return self.emit(Opcode.INCREMENT, dst, amount)

    def dec(self, dst, amount=None) -> Instruction:
        if amount is None:
            return self.emit(Opcode.DECREMENT, dst)
        return self.emit(Opcode.DECREMENT, dst, amount)

    def jmp(self, target) -> Instruction:
        return self.emit(Opcode.JUMP, target)

    def je(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_EQ, target)

    def jne(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_NE, target)

    def jl(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_LT, target)

    def jle(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_LE, target)

    def jg(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_GT, target)

    def jge(self, target) -> Instruction:
        return self.emit(Opcode.JUMP_GE, target)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _coerce_opcode(self, opcode) -> Opcode:
        if isinstance(opcode, Opcode):
            return opcode
        if isinstance(opcode, str):
            resolved = Opcode.from_mnemonic(opcode)
            if resolved is not None:
                return resolved
        raise InvalidOperand(f"Unknown mnemonic: {opcode!r}")

    def _coerce_operand(self, operand) -> Operand:
        if isinstance(operand, (RegisterRef, Immediate, LabelRef)):
            return operand
        if isinstance(operand, Register):
            return RegisterRef(operand)
        # bool is an int subclass
        if isinstance(operand, int) and not isinstance(operand, bool):
            return Immediate(operand)
        if isinstance(operand, str) and operand:
            return self.resolve_identifier(operand)
        raise InvalidOperand(f"Not an operand: {operand!r}")

