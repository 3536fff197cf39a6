"""Engine: Runs a finished Program to completion.

Execution loop:
    while 0 <= pc < len(program):
        FETCH instruction at pc -> REGISTRY primitive -> new MachineState

The loop stops only when the program counter leaves [0, len(program)).
A program that never does so runs forever unless the engine was given an
opt-in step limit (max_steps), which is an addition to the bare machine.

Each run owns a fresh MachineState; an Engine keeps no state between runs,
so one Program can be run any number of times with identical results.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .builder import ProgramBuilder
from .errors import MachineError, StepLimitExceeded
from .program import Instruction, Program
from .registry import OpcodeRegistry, get_registry
from .state import MachineState, create_initial_state

logger = logging.getLogger(__name__)


@dataclass
class ExecutionTraceEntry:
    """Single executed instruction.

    Attributes:
        cycle: Cycle number (0-indexed)
        pc: Address the instruction was fetched from
        instruction: Executed instruction
        pre_state: Snapshot before execution
        post_state: Snapshot after execution
    """
    cycle: int
    pc: int
    instruction: Instruction
    pre_state: dict
    post_state: dict


@dataclass
class ExecutionResult:
    """Final state of one run plus its trace (empty unless tracing)."""
    state: MachineState
    trace: List[ExecutionTraceEntry] = field(default_factory=list)

    @property
    def registers(self) -> Dict[str, int]:
        return self.state.dump_registers()

    @property
    def values(self) -> Tuple[int, int, int, int]:
        return self.state.values()

    @property
    def cycles(self) -> int:
        return self.state.cycle_count

    @property
    def flag(self) -> str:
        return self.state.flag.value

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "cycles": self.cycles,
            "registers": self.registers,
            "flag": self.flag,
            "pc": self.state.pc,
            "trace_length": len(self.trace),
        }

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 70)
        print("EXECUTION TRACE")
        print("=" * 70)

        for entry in self.trace:
            print(f"\n[Cycle {entry.cycle}] PC={entry.pc}")
            print(f"  Instruction: {entry.instruction}")

            # Show register changes
            pre_regs = entry.pre_state["registers"]
            post_regs = entry.post_state["registers"]
            changes = []
            for reg in pre_regs:
                if pre_regs[reg] != post_regs[reg]:
                    changes.append(f"{reg}: {pre_regs[reg]} → {post_regs[reg]}")
            if changes:
                print(f"  Changes: {', '.join(changes)}")

            if entry.pre_state["flag"] != entry.post_state["flag"]:
                print(f"  Flag: {entry.pre_state['flag']} → {entry.post_state['flag']}")

            post_pc = entry.post_state["pc"]
            if post_pc != entry.pc + 1:
                print(f"  PC: {entry.pc} → {post_pc}")

        print("\n" + "=" * 70)
        print("FINAL STATE")
        print("=" * 70)
        print(f"  Registers: {self.registers}")
        print(f"  Flag: {self.flag}")
        print(f"  PC: {self.state.pc}")
        print(f"  Cycles: {self.cycles}")


class Engine:
    """Register-machine execution engine.

    Attributes:
        registry: OpcodeRegistry used for dispatch
        max_steps: Optional step limit (None runs without bound)
        trace: Whether execute() records an ExecutionTraceEntry per step
    """

    def __init__(
        self,
        max_steps: Optional[int] = None,
        trace: bool = False,
        registry: Optional[OpcodeRegistry] = None
    ):
        if max_steps is not None and max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {max_steps}")
        self.registry = registry if registry is not None else get_registry()
        self.max_steps = max_steps
        self.trace = trace

    def step(self, program: Program, state: MachineState) -> MachineState:
        """Execute the instruction at state.pc.

        Raises:
            IndexError: If state.pc is outside the program
            UnresolvedLabel: If a taken jump names an undeclared label
        """
        if not state.in_bounds(len(program)):
            raise IndexError(f"PC {state.pc} outside program of {len(program)} instructions")
        return self.registry.execute(state, program, program[state.pc])

    def execute(self, program: Program) -> ExecutionResult:
        """Run program from a fresh state until the PC leaves the program.

        Returns:
            ExecutionResult with the final state and the trace

        Raises:
            UnresolvedLabel: A taken jump names an undeclared label
            StepLimitExceeded: max_steps instructions ran without terminating

        Errors raised mid-run carry the partial ExecutionResult as .result.
        """
        state = create_initial_state()
        trace: List[ExecutionTraceEntry] = []
        count = len(program)

        logger.debug(
            "Running program: %d instructions, %d labels", count, len(program.labels)
        )

        try:
            while state.in_bounds(count):
                if self.max_steps is not None and state.cycle_count >= self.max_steps:
                    raise StepLimitExceeded(self.max_steps)

                if self.trace:
                    pc = state.pc
                    pre_state = state.snapshot()
                    state = self.step(program, state)
                    trace.append(ExecutionTraceEntry(
                        cycle=pre_state["cycle_count"],
                        pc=pc,
                        instruction=program[pc],
                        pre_state=pre_state,
                        post_state=state.snapshot()
                    ))
                    logger.debug("%4d  %-24s %s", pc, program[pc], state)
                else:
                    state = self.step(program, state)
        except MachineError as e:
            e.result = ExecutionResult(state=state, trace=trace)
            raise

        logger.debug("Program terminated after %d cycles at pc=%d", state.cycle_count, state.pc)
        return ExecutionResult(state=state, trace=trace)

    def run(self, program: Program) -> Tuple[int, int, int, int]:
        """Run program and return the final (AX, BX, CX, DX) values."""
        return self.execute(program).values


def asm(author: Callable[[ProgramBuilder], object], engine: Optional[Engine] = None) -> List[int]:
    """Build a program with author(builder), run it, return [AX, BX, CX, DX].

    Example:
        >>> def count_to_three(b):
        ...     b.label("loop")
        ...     b.inc(b.ax)
        ...     b.cmp(b.ax, 3)
        ...     b.jl("loop")
        >>> asm(count_to_three)
        [3, 0, 0, 0]
    """
    builder = ProgramBuilder()
    author(builder)
    if engine is None:
        engine = Engine()
    return list(engine.run(builder.finish()))
