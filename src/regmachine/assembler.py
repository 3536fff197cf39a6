"""Assembler: text front end for the program builder.

Source format:
    - One statement per line
    - Comments start with ; or #
    - `name:` declares a label; an instruction may follow on the same line
    - Mnemonics are case insensitive, canonical (MOVE, JUMP_GT) or short (MOV, JG)
    - Operands are separated by commas and/or whitespace
    - Integer literals: decimal (optionally signed), 0x hex, 0b binary
    - Any other identifier is a register name or a label reference

Example:
        MOV AX, 0
    loop:
        INC AX
        CMP AX, 3
        JL loop         ; AX = 3 at exit

Statements are fed straight to a ProgramBuilder. Jump targets become
LabelRefs whether or not the label was declared yet, so one pass suffices.
"""

import logging
import re
from typing import List, Optional, Union

from .builder import ProgramBuilder
from .errors import AssemblySyntaxError, MachineError
from .program import Immediate, Opcode, Operand, Program, Register

logger = logging.getLogger(__name__)

_COMMENT = re.compile(r'[;#].*$')
_LABEL = re.compile(r'^([A-Za-z_][\w.]*)\s*:\s*(.*)$')
_STATEMENT = re.compile(r'^(\S+)\s*(.*)$')
_INTEGER = re.compile(r'^[+-]?(0[xX][0-9a-fA-F]+|0[bB][01]+|\d+)$')
_IDENTIFIER = re.compile(r'^[A-Za-z_][\w.]*$')


class Assembler:
    """Translates assembly source into a Program.

    Attributes:
        builder: Builder of the program currently being assembled
    """

    def __init__(self):
        self.builder: Optional[ProgramBuilder] = None

    def assemble(self, source: str) -> Program:
        """Assemble source code into an immutable Program.

        Raises:
            AssemblySyntaxError: Unknown mnemonic or malformed token
            InvalidOperand: Operand kind or count wrong for a mnemonic
            UnknownRegister: Non-register name where a register is required

        Builder errors get a line_num attribute set to the offending line.
        """
        self.builder = ProgramBuilder()

        for line_num, raw in enumerate(source.split("\n"), start=1):
            line = _COMMENT.sub('', raw).strip()
            if not line:
                continue

            try:
                self._assemble_line(line, line_num, raw)
            except AssemblySyntaxError:
                raise
            except MachineError as e:
                e.line_num = line_num
                raise

        program = self.builder.finish()
        logger.debug(
            "Assembled %d instructions, %d labels", len(program), len(program.labels)
        )
        return program

    def _assemble_line(self, line: str, line_num: int, raw: str) -> None:
        label_match = _LABEL.match(line)
        if label_match:
            name, line = label_match.group(1), label_match.group(2).strip()
            if Register.is_register_name(name):
                raise AssemblySyntaxError(
                    f"Register name cannot be used as a label: {name}", line_num, raw
                )
            self.builder.declare_label(name)
            if not line:
                return

        statement = _STATEMENT.match(line)
        mnemonic, rest = statement.group(1), statement.group(2)

        opcode = Opcode.from_mnemonic(mnemonic)
        if opcode is None:
            raise AssemblySyntaxError(f"Unknown instruction: {mnemonic}", line_num, raw)

        operands = [
            self._parse_operand(token, line_num, raw)
            for token in self._split_operands(rest)
        ]
        self.builder.emit(opcode, *operands)

    def _split_operands(self, text: str) -> List[str]:
        text = text.strip()
        if not text:
            return []
        return [token for token in re.split(r'[,\s]+', text) if token]

    def _parse_operand(self, token: str, line_num: int, raw: str) -> Union[Operand, str]:
        # Identifiers stay strings; emit decides register or label by position
        if _INTEGER.match(token):
            return Immediate(self._parse_immediate(token))
        if _IDENTIFIER.match(token):
            return token
        raise AssemblySyntaxError(f"Invalid operand: {token}", line_num, raw)

    def _parse_immediate(self, value: str) -> int:
        """Parse an immediate value (decimal, hex, or binary).

        Raises:
            ValueError: If value cannot be parsed
        """
        value = value.strip().upper()
        sign = -1 if value.startswith("-") else 1
        digits = value.lstrip("+-")

        # Hex: 0x prefix
        if digits.startswith("0X"):
            return sign * int(digits, 16)

        # Binary: 0b prefix
        if digits.startswith("0B"):
            return sign * int(digits, 2)

        return sign * int(digits)


def parse_program(source: str) -> Program:
    """Assemble source code into a Program."""
    return Assembler().assemble(source)
