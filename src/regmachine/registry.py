"""OpcodeRegistry: Dispatch table of register-machine primitives.

Each opcode maps to a primitive with the signature
(MachineState, Program, Instruction) -> MachineState. Primitives never
mutate the incoming state.

Primitives:
    MOVE dst, src: dst <- value(src)
    INCREMENT dst, amount: dst <- dst + value(amount)
    DECREMENT dst, amount: dst <- dst - value(amount)
    COMPARE a, b: flag <- LESS / EQUAL / GREATER of value(a) vs value(b)
    JUMP target: pc <- label table[target.name]
    JUMP_EQ / JUMP_NE / JUMP_LT / JUMP_LE / JUMP_GT / JUMP_GE target:
        JUMP if the flag satisfies the relation, else pc + 1

Labels are looked up by name in the program's table on every executed
jump.
"""

from typing import Callable, Dict, FrozenSet, Optional

from .errors import InvalidOperand
from .program import (
    Comparison,
    Immediate,
    Instruction,
    LabelRef,
    Opcode,
    Operand,
    Program,
    Register,
    RegisterRef,
)
from .state import MachineState

Primitive = Callable[[MachineState, Program, Instruction], MachineState]


# Flags on which each conditional jump is taken
JUMP_CONDITIONS: Dict[Opcode, FrozenSet[Comparison]] = {
    Opcode.JUMP_EQ: frozenset({Comparison.EQUAL}),
    Opcode.JUMP_NE: frozenset({Comparison.LESS, Comparison.GREATER}),
    Opcode.JUMP_LT: frozenset({Comparison.LESS}),
    Opcode.JUMP_LE: frozenset({Comparison.LESS, Comparison.EQUAL}),
    Opcode.JUMP_GT: frozenset({Comparison.GREATER}),
    Opcode.JUMP_GE: frozenset({Comparison.GREATER, Comparison.EQUAL}),
}


class OpcodeRegistry:
    """Frozen registry of opcode primitives.

    Attributes:
        _primitives: Dictionary mapping opcodes to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        self._primitives: Dict[Opcode, Primitive] = {}
        self._frozen = False
        self._register_all_primitives()
        self.freeze()

    def _register_all_primitives(self) -> None:
        # Data movement
        self.register(Opcode.MOVE, self._op_move)

        # Arithmetic
        self.register(Opcode.INCREMENT, self._op_increment)
        self.register(Opcode.DECREMENT, self._op_decrement)

        # Comparison
        self.register(Opcode.COMPARE, self._op_compare)

        # Control flow
        self.register(Opcode.JUMP, self._op_jump)
        for opcode in JUMP_CONDITIONS:
            self.register(opcode, self._op_conditional_jump)

    def register(self, opcode: Opcode, handler: Primitive) -> None:
        """Register a primitive operation.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register primitives: registry is frozen")
        if opcode in self._primitives:
            raise ValueError(f"Primitive already registered: {opcode.value}")
        self._primitives[opcode] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_opcodes(self) -> set:
        return set(self._primitives.keys())

    def execute(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """Execute one instruction against state.

        Returns:
            New state after execution, cycle count incremented

        Raises:
            KeyError: If the opcode has no primitive
            UnresolvedLabel: If a taken jump names an undeclared label
        """
        if instruction.opcode not in self._primitives:
            raise KeyError(f"Unknown opcode: {instruction.opcode}")

        handler = self._primitives[instruction.opcode]
        new_state = handler(state, program, instruction)

        # Always increment cycle count after execution
        return new_state.increment_cycle()

    # =========================================================================
    # Data Movement Primitives
    # =========================================================================

    def _op_move(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """MOVE dst, src - Copy the current value of src into dst."""
        dst, src = instruction.operands
        value = self._value(state, src)
        return state.set_register(self._destination(dst), value).increment_pc()

    # =========================================================================
    # Arithmetic Primitives
    # =========================================================================

    def _op_increment(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """INCREMENT dst, amount - Add amount (default 1) to dst."""
        dst, amount = self._with_default_amount(instruction)
        reg = self._destination(dst)
        result = state.get_register(reg) + self._value(state, amount)
        return state.set_register(reg, result).increment_pc()

    def _op_decrement(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """DECREMENT dst, amount - Subtract amount (default 1) from dst.

        No lower bound: DECREMENT DX from 0 gives -1.
        """
        dst, amount = self._with_default_amount(instruction)
        reg = self._destination(dst)
        result = state.get_register(reg) - self._value(state, amount)
        return state.set_register(reg, result).increment_pc()

    # =========================================================================
    # Comparison Primitives
    # =========================================================================

    def _op_compare(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """COMPARE a, b - Set the flag from a three-way comparison.

        Registers are left untouched.
        """
        a, b = instruction.operands
        left = state.get_register(self._destination(a))
        right = self._value(state, b)
        return state.set_flag(Comparison.of(left, right)).increment_pc()

    # =========================================================================
    # Control Flow Primitives
    # =========================================================================

    def _op_jump(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """JUMP target - Unconditional jump to the label's instruction."""
        (target,) = instruction.operands
        return state.set_pc(self._resolve_target(state, program, target))

    def _op_conditional_jump(self, state: MachineState, program: Program, instruction: Instruction) -> MachineState:
        """JUMP_xx target - Jump if the flag satisfies the opcode's relation.

        An untaken jump does not look at the label table.
        """
        if state.flag in JUMP_CONDITIONS[instruction.opcode]:
            return self._op_jump(state, program, instruction)
        return state.increment_pc()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _value(self, state: MachineState, operand: Operand) -> int:
        """Read a source operand by value."""
        if isinstance(operand, Immediate):
            return operand.value
        if isinstance(operand, RegisterRef):
            return state.get_register(operand.register)
        raise InvalidOperand(f"Expected register or immediate, got {operand}")

    def _destination(self, operand: Operand) -> Register:
        if isinstance(operand, RegisterRef):
            return operand.register
        raise InvalidOperand(f"Expected register, got {operand}")

    def _resolve_target(self, state: MachineState, program: Program, operand: Operand) -> int:
        if not isinstance(operand, LabelRef):
            raise InvalidOperand(f"Expected label, got {operand}")
        return program.resolve_label(operand.name, pc=state.pc)

    def _with_default_amount(self, instruction: Instruction):
        # Hand-built Instructions may omit the amount
        if len(instruction.operands) == 1:
            return instruction.operands[0], Immediate(1)
        return instruction.operands


# Singleton registry instance
_registry: Optional[OpcodeRegistry] = None


def get_registry() -> OpcodeRegistry:
    """Get the singleton frozen OpcodeRegistry."""
    global _registry
    if _registry is None:
        _registry = OpcodeRegistry()
    return _registry
