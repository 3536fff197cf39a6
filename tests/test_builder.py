"""Tests for ProgramBuilder and the program data model."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from regmachine.builder import ProgramBuilder
from regmachine.errors import InvalidOperand, UnknownRegister
from regmachine.program import (
    Immediate,
    Instruction,
    LabelRef,
    Opcode,
    Program,
    Register,
    RegisterRef,
)


@pytest.fixture
def builder():
    return ProgramBuilder()


class TestRegister:
    """Test register operand construction."""

    def test_register_names(self, builder):
        """All four registers resolve, case insensitive."""
        assert builder.register("AX") == RegisterRef(Register.AX)
        assert builder.register("bx") == RegisterRef(Register.BX)
        assert builder.register("Cx") == RegisterRef(Register.CX)
        assert builder.register(Register.DX) == RegisterRef(Register.DX)

    def test_unknown_register(self, builder):
        """Names outside the fixed set raise UnknownRegister."""
        with pytest.raises(UnknownRegister) as excinfo:
            builder.register("EX")
        assert excinfo.value.name == "EX"

    def test_register_properties(self, builder):
        """ax/bx/cx/dx properties match register()."""
        assert builder.ax == builder.register("AX")
        assert builder.dx == builder.register("DX")


class TestResolveIdentifier:
    """Test identifier resolution."""

    def test_unknown_name_is_label(self, builder):
        """Undeclared names become LabelRefs."""
        assert builder.resolve_identifier("loop") == LabelRef("loop")

    def test_does_not_consult_label_table(self, builder):
        """Declared and undeclared names give the same operand."""
        before = builder.resolve_identifier("done")
        builder.declare_label("done")
        after = builder.resolve_identifier("done")
        assert before == after == LabelRef("done")

    def test_register_name_is_register(self, builder):
        """Register names resolve to RegisterRefs."""
        assert builder.resolve_identifier("cx") == RegisterRef(Register.CX)

    def test_labels_are_case_sensitive(self, builder):
        """Label names keep their case."""
        assert builder.resolve_identifier("Loop") != builder.resolve_identifier("loop")


class TestDeclareLabel:
    """Test label declaration."""

    def test_label_marks_next_instruction(self, builder):
        """A label maps to the number of instructions emitted so far."""
        builder.declare_label("start")
        builder.mov(builder.ax, 1)
        builder.mov(builder.bx, 2)
        builder.declare_label("middle")
        builder.inc(builder.ax)
        builder.declare_label("end")

        program = builder.finish()
        assert program.labels == {"start": 0, "middle": 2, "end": 3}

    def test_redeclaration_overwrites(self, builder):
        """The last declaration of a name wins."""
        builder.declare_label("target")
        builder.inc(builder.ax)
        builder.declare_label("target")
        assert builder.finish().labels["target"] == 1

    def test_returns_label_ref(self, builder):
        """declare_label returns a usable LabelRef."""
        ref = builder.declare_label("top")
        assert ref == LabelRef("top")
        builder.jmp(ref)

    def test_empty_name_rejected(self, builder):
        with pytest.raises(InvalidOperand):
            builder.declare_label("")

    @pytest.mark.parametrize("name", ["ax", "BX", "Dx"])
    def test_register_name_rejected(self, builder, name):
        """Register names cannot be declared as labels."""
        with pytest.raises(InvalidOperand):
            builder.label(name)
        assert builder.finish().labels == {}


class TestEmit:
    """Test instruction emission and operand checking."""

    def test_move(self, builder):
        """MOVE takes a destination register and a value."""
        instruction = builder.emit(Opcode.MOVE, builder.ax, Immediate(5))
        assert instruction == Instruction(Opcode.MOVE, (RegisterRef(Register.AX), Immediate(5)))

    def test_mnemonic_strings(self, builder):
        """Opcodes may be given as canonical or short mnemonics."""
        assert builder.emit("MOVE", builder.ax, 1).opcode is Opcode.MOVE
        assert builder.emit("mov", builder.ax, 1).opcode is Opcode.MOVE
        assert builder.emit("jge", "end").opcode is Opcode.JUMP_GE

    def test_int_and_str_coercion(self, builder):
        """ints become Immediates; strings name registers or go through resolve_identifier."""
        instruction = builder.emit(Opcode.MOVE, "ax", -3)
        assert instruction.operands == (RegisterRef(Register.AX), Immediate(-3))
        jump = builder.emit(Opcode.JUMP, "later")
        assert jump.operands == (LabelRef("later"),)

    def test_increment_default_amount(self, builder):
        """INCREMENT and DECREMENT default to the immediate 1."""
        inc = builder.emit(Opcode.INCREMENT, builder.ax)
        dec = builder.dec(builder.dx)
        assert inc.operands == (RegisterRef(Register.AX), Immediate(1))
        assert dec.operands == (RegisterRef(Register.DX), Immediate(1))

    def test_increment_register_amount(self, builder):
        inc = builder.inc(builder.ax, builder.bx)
        assert inc.operands == (RegisterRef(Register.AX), RegisterRef(Register.BX))

    def test_immediate_destination_rejected(self, builder):
        """An Immediate cannot be a destination."""
        with pytest.raises(InvalidOperand):
            builder.emit(Opcode.MOVE, Immediate(1), builder.ax)

    def test_label_as_value_rejected(self, builder):
        """A label cannot be a source value."""
        with pytest.raises(InvalidOperand):
            builder.cmp(builder.ax, "somewhere")

    def test_compare_needs_register_first(self, builder):
        with pytest.raises(InvalidOperand):
            builder.cmp(3, builder.ax)

    def test_jump_needs_label(self, builder):
        """Jump targets must be labels."""
        with pytest.raises(InvalidOperand):
            builder.jmp(5)
        with pytest.raises(InvalidOperand):
            builder.jl(builder.ax)

    @pytest.mark.parametrize("opcode,operands", [
        (Opcode.MOVE, (RegisterRef(Register.AX),)),
        (Opcode.MOVE, (RegisterRef(Register.AX), Immediate(1), Immediate(2))),
        (Opcode.COMPARE, ()),
        (Opcode.INCREMENT, ()),
        (Opcode.DECREMENT, (RegisterRef(Register.AX), Immediate(1), Immediate(1))),
        (Opcode.JUMP, ()),
        (Opcode.JUMP_EQ, (LabelRef("a"), LabelRef("b"))),
    ])
    def test_arity_mismatch(self, builder, opcode, operands):
        """Wrong operand counts raise InvalidOperand."""
        with pytest.raises(InvalidOperand):
            builder.emit(opcode, *operands)

    def test_unknown_mnemonic(self, builder):
        with pytest.raises(InvalidOperand):
            builder.emit("ADD", builder.ax, 1)

    def test_unknown_register_name_in_destination(self, builder):
        """A string in a register position must name a register."""
        with pytest.raises(UnknownRegister) as excinfo:
            builder.emit("MOVE", "EX", 1)
        assert excinfo.value.name == "EX"

    def test_unknown_register_name_in_dsl(self, builder):
        with pytest.raises(UnknownRegister):
            builder.cmp("counter", 3)
        with pytest.raises(UnknownRegister):
            builder.inc("R0")
        assert len(builder.finish()) == 0

    def test_label_ref_in_destination(self, builder):
        """An explicit LabelRef as destination is a kind mismatch."""
        with pytest.raises(InvalidOperand):
            builder.mov(LabelRef("AX"), 1)

    def test_bool_is_not_an_operand(self, builder):
        with pytest.raises(InvalidOperand):
            builder.mov(builder.ax, True)

    def test_failed_emit_appends_nothing(self, builder):
        """A rejected instruction is not added to the program."""
        with pytest.raises(InvalidOperand):
            builder.mov(1, 2)
        assert len(builder.finish()) == 0


class TestFinish:
    """Test Program snapshot."""

    def test_program_contents(self, builder):
        builder.mov(builder.ax, 5)
        builder.label("l")
        builder.jmp("l")
        program = builder.finish()

        assert isinstance(program, Program)
        assert len(program) == 2
        assert program[0].opcode is Opcode.MOVE
        assert program.labels == {"l": 1}

    def test_program_is_a_snapshot(self, builder):
        """Building further does not change an already finished Program."""
        builder.inc(builder.ax)
        program = builder.finish()
        builder.inc(builder.bx)
        builder.label("late")
        assert len(program) == 1
        assert "late" not in program.labels

    def test_label_table_is_read_only(self, builder):
        builder.label("x")
        program = builder.finish()
        with pytest.raises(TypeError):
            program.labels["y"] = 0

    def test_program_is_hashable(self, builder):
        """Equal programs hash equal and can key a dict."""
        builder.mov(builder.ax, 1)
        builder.label("end")
        first = builder.finish()
        second = builder.finish()

        assert hash(first) == hash(second)
        assert {first: "cached"}[second] == "cached"
        assert hash(Program()) == hash(Program())


class TestProgramModel:
    """Test Program and Instruction helpers."""

    def test_instruction_str(self):
        instruction = Instruction(Opcode.MOVE, (RegisterRef(Register.AX), Immediate(5)))
        assert str(instruction) == "MOVE AX, 5"
        assert str(Instruction(Opcode.JUMP_GT, (LabelRef("loop"),))) == "JUMP_GT loop"

    def test_opcode_short_forms(self):
        assert Opcode.from_mnemonic("jle") is Opcode.JUMP_LE
        assert Opcode.from_mnemonic("Compare") is Opcode.COMPARE
        assert Opcode.from_mnemonic("halt") is None

    def test_listing(self, builder):
        """Listing shows label markers before their instructions."""
        builder.label("top")
        builder.inc(builder.ax)
        builder.jl("top")
        builder.label("end")
        listing = builder.finish().listing()

        lines = listing.splitlines()
        assert lines[0] == "top:"
        assert "INCREMENT AX, 1" in lines[1]
        assert "JUMP_LT top" in lines[2]
        assert lines[-1] == "end:"
