"""MachineState: Immutable execution state for the register machine.

State Components:
    - Registers: AX, BX, CX, DX (unbounded Python integers, start at 0)
    - PC: Program counter (index of the next instruction)
    - Flag: Result of the last COMPARE (LESS, EQUAL, GREATER; starts EQUAL)
    - Cycle count: Instructions executed so far

Every mutation returns a new state object. A register read therefore always
yields the value at that instant, never an alias of the register.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

from .program import Comparison, Register


def _zeroed_registers() -> Dict[Register, int]:
    return {reg: 0 for reg in Register}


@dataclass(frozen=True)
class MachineState:
    """Immutable machine state.

    Attributes:
        registers: Mapping of Register to current value
        pc: Program counter (current instruction index)
        flag: Comparison flag set by COMPARE
        cycle_count: Number of executed instructions
    """
    registers: Dict[Register, int] = field(default_factory=_zeroed_registers)
    pc: int = 0
    flag: Comparison = Comparison.EQUAL
    cycle_count: int = 0

    def __hash__(self) -> int:
        return hash((frozenset(self.registers.items()), self.pc, self.flag, self.cycle_count))

    def snapshot(self) -> dict:
        """Create a plain-dict snapshot of the state for tracing.

        Returns:
            Dictionary with register names as string keys
        """
        return {
            "registers": self.dump_registers(),
            "pc": self.pc,
            "flag": self.flag.value,
            "cycle_count": self.cycle_count,
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Exactly the four registers exist and hold ints
            - PC and cycle count are integers, cycle count non-negative
            - Flag is a Comparison
        """
        if set(self.registers.keys()) != set(Register):
            return False

        for value in self.registers.values():
            if not isinstance(value, int) or isinstance(value, bool):
                return False

        if not isinstance(self.pc, int):
            return False

        if not isinstance(self.flag, Comparison):
            return False

        if self.cycle_count < 0:
            return False

        return True

    def get_register(self, reg) -> int:
        """Get value of a register.

        Args:
            reg: Register or register name (case insensitive)

        Raises:
            UnknownRegister: If register doesn't exist
        """
        return self.registers[self._register(reg)]

    def set_register(self, reg, value: int) -> "MachineState":
        """Create new state with updated register value."""
        new_registers = dict(self.registers)
        new_registers[self._register(reg)] = value
        return replace(self, registers=new_registers)

    def set_flag(self, flag: Comparison) -> "MachineState":
        """Create new state with the comparison flag replaced."""
        return replace(self, flag=flag)

    def increment_pc(self) -> "MachineState":
        """Create new state with PC incremented by 1."""
        return replace(self, pc=self.pc + 1)

    def set_pc(self, new_pc: int) -> "MachineState":
        """Create new state with new PC value."""
        return replace(self, pc=new_pc)

    def increment_cycle(self) -> "MachineState":
        """Create new state with cycle count incremented."""
        return replace(self, cycle_count=self.cycle_count + 1)

    def dump_registers(self) -> Dict[str, int]:
        """Get a copy of all register values keyed by name, in AX..DX order."""
        return {reg.value: self.registers[reg] for reg in Register}

    def values(self) -> Tuple[int, int, int, int]:
        """Register values in AX, BX, CX, DX order."""
        return tuple(self.registers[reg] for reg in Register)

    def in_bounds(self, instruction_count: int) -> bool:
        """Whether PC addresses an instruction (execution continues)."""
        return 0 <= self.pc < instruction_count

    def _register(self, reg) -> Register:
        if isinstance(reg, Register):
            return reg
        return Register.from_name(reg)

    def __str__(self) -> str:
        """Human-readable state representation."""
        regs = " ".join(f"{k}={v}" for k, v in self.dump_registers().items())
        return f"[Cycle {self.cycle_count}] PC={self.pc} {regs} FLAG={self.flag.value}"


def create_initial_state() -> MachineState:
    """Fresh state: registers zeroed, PC 0, flag EQUAL."""
    return MachineState(
        registers=_zeroed_registers(),
        pc=0,
        flag=Comparison.EQUAL,
        cycle_count=0
    )
