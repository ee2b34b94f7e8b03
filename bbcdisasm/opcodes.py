"""Static 6502 opcode table and classification helpers.

Every opcode the disassembler recognises is described by an
:class:`InstructionDescriptor`.  The table covers the documented 6502
instruction set plus the handful of undocumented instructions (``ANC``,
``SLO`` and ``SRE``) that turn up in commercial BBC Micro software.  Bytes
that are not present in the table are always emitted as data, so the table
never has to be exhaustive.

Branch instructions are stored with :attr:`AddressingMode.IMPLICIT`; their
operand is a relative displacement which the decoder special-cases through
:func:`classify` rather than through the addressing mode.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Sequence, Tuple


class AddressingMode(enum.Enum):
    """Operand interpretation for an instruction.

    ``IMPLICIT``      no operand                                 ``RTS``
    ``ACCUMULATOR``   operates on the accumulator                ``ASL A``
    ``IMMEDIATE``     constant byte                              ``LDA #&FF``
    ``ABSOLUTE``      16-bit address                             ``LDA &1234``
    ``ZERO_PAGE``     8-bit zero page address                    ``LDA &12``
    ``ZERO_PAGE_X``   zero page address + X                      ``LDA &12,X``
    ``ZERO_PAGE_Y``   zero page address + Y (LDX/STX only)       ``LDX &12,Y``
    ``INDIRECT``      address stored in memory (JMP only)        ``JMP (&1234)``
    ``ABSOLUTE_X``    16-bit address + X                         ``LDA &1234,X``
    ``ABSOLUTE_Y``    16-bit address + Y                         ``LDA &1234,Y``
    ``INDIRECT_X``    zero page pointer table indexed by X       ``LDA (&80,X)``
    ``INDIRECT_Y``    zero page pointer, result indexed by Y     ``LDA (&80),Y``
    """

    IMPLICIT = "implicit"
    ACCUMULATOR = "accumulator"
    IMMEDIATE = "immediate"
    ABSOLUTE = "absolute"
    ZERO_PAGE = "zero_page"
    ZERO_PAGE_X = "zero_page_x"
    ZERO_PAGE_Y = "zero_page_y"
    INDIRECT = "indirect"
    ABSOLUTE_X = "absolute_x"
    ABSOLUTE_Y = "absolute_y"
    INDIRECT_X = "indirect_x"
    INDIRECT_Y = "indirect_y"


class FlowKind(enum.Enum):
    """Control-flow role of an instruction."""

    BRANCH = "branch"
    JUMP = "jump"
    NEITHER = "neither"


@dataclass(frozen=True)
class InstructionDescriptor:
    """Immutable description of a single opcode byte."""

    opcode: int
    mnemonic: str
    length: int
    mode: AddressingMode


OP_JMP_ABSOLUTE = 0x4C
OP_JMP_INDIRECT = 0x6C
OP_JSR_ABSOLUTE = 0x20

UNDOCUMENTED_MNEMONICS: FrozenSet[str] = frozenset({"ANC", "SRE", "SLO"})
BRANCH_MNEMONICS: FrozenSet[str] = frozenset(
    {"BPL", "BMI", "BVC", "BVS", "BCC", "BCS", "BNE", "BEQ"}
)
JUMP_MNEMONICS: FrozenSet[str] = frozenset({"JMP", "JSR"})

ABSOLUTE_MODES: FrozenSet[AddressingMode] = frozenset(
    {AddressingMode.ABSOLUTE, AddressingMode.ABSOLUTE_X, AddressingMode.ABSOLUTE_Y}
)


_M = AddressingMode

# (opcode, mnemonic, length, mode).  Mostly from the 6502.org opcode tutorial;
# ANC, SLO and SRE follow the jsbeeb opcode tables.
_OPCODE_ROWS: Sequence[Tuple[int, str, int, AddressingMode]] = (
    (0x69, "ADC", 2, _M.IMMEDIATE),
    (0x65, "ADC", 2, _M.ZERO_PAGE),
    (0x75, "ADC", 2, _M.ZERO_PAGE_X),
    (0x6D, "ADC", 3, _M.ABSOLUTE),
    (0x7D, "ADC", 3, _M.ABSOLUTE_X),
    (0x79, "ADC", 3, _M.ABSOLUTE_Y),
    (0x61, "ADC", 2, _M.INDIRECT_X),
    (0x71, "ADC", 2, _M.INDIRECT_Y),
    (0x0B, "ANC", 2, _M.IMMEDIATE),
    (0x2B, "ANC", 2, _M.IMMEDIATE),
    (0x29, "AND", 2, _M.IMMEDIATE),
    (0x25, "AND", 2, _M.ZERO_PAGE),
    (0x35, "AND", 2, _M.ZERO_PAGE_X),
    (0x2D, "AND", 3, _M.ABSOLUTE),
    (0x3D, "AND", 3, _M.ABSOLUTE_X),
    (0x39, "AND", 3, _M.ABSOLUTE_Y),
    (0x21, "AND", 2, _M.INDIRECT_X),
    (0x31, "AND", 2, _M.INDIRECT_Y),
    (0x0A, "ASL", 1, _M.ACCUMULATOR),
    (0x06, "ASL", 2, _M.ZERO_PAGE),
    (0x16, "ASL", 2, _M.ZERO_PAGE_X),
    (0x0E, "ASL", 3, _M.ABSOLUTE),
    (0x1E, "ASL", 3, _M.ABSOLUTE_X),
    (0x24, "BIT", 2, _M.ZERO_PAGE),
    (0x2C, "BIT", 3, _M.ABSOLUTE),
    (0x10, "BPL", 2, _M.IMPLICIT),
    (0x30, "BMI", 2, _M.IMPLICIT),
    (0x50, "BVC", 2, _M.IMPLICIT),
    (0x70, "BVS", 2, _M.IMPLICIT),
    (0x90, "BCC", 2, _M.IMPLICIT),
    (0xB0, "BCS", 2, _M.IMPLICIT),
    (0xD0, "BNE", 2, _M.IMPLICIT),
    (0xF0, "BEQ", 2, _M.IMPLICIT),
    (0x00, "BRK", 1, _M.IMPLICIT),
    (0xC9, "CMP", 2, _M.IMMEDIATE),
    (0xC5, "CMP", 2, _M.ZERO_PAGE),
    (0xD5, "CMP", 2, _M.ZERO_PAGE_X),
    (0xCD, "CMP", 3, _M.ABSOLUTE),
    (0xDD, "CMP", 3, _M.ABSOLUTE_X),
    (0xD9, "CMP", 3, _M.ABSOLUTE_Y),
    (0xC1, "CMP", 2, _M.INDIRECT_X),
    (0xD1, "CMP", 2, _M.INDIRECT_Y),
    (0xE0, "CPX", 2, _M.IMMEDIATE),
    (0xE4, "CPX", 2, _M.ZERO_PAGE),
    (0xEC, "CPX", 3, _M.ABSOLUTE),
    (0xC0, "CPY", 2, _M.IMMEDIATE),
    (0xC4, "CPY", 2, _M.ZERO_PAGE),
    (0xCC, "CPY", 3, _M.ABSOLUTE),
    (0xC6, "DEC", 2, _M.ZERO_PAGE),
    (0xD6, "DEC", 2, _M.ZERO_PAGE_X),
    (0xCE, "DEC", 3, _M.ABSOLUTE),
    (0xDE, "DEC", 3, _M.ABSOLUTE_X),
    (0x49, "EOR", 2, _M.IMMEDIATE),
    (0x45, "EOR", 2, _M.ZERO_PAGE),
    (0x55, "EOR", 2, _M.ZERO_PAGE_X),
    (0x4D, "EOR", 3, _M.ABSOLUTE),
    (0x5D, "EOR", 3, _M.ABSOLUTE_X),
    (0x59, "EOR", 3, _M.ABSOLUTE_Y),
    (0x41, "EOR", 2, _M.INDIRECT_X),
    (0x51, "EOR", 2, _M.INDIRECT_Y),
    (0x18, "CLC", 1, _M.IMPLICIT),
    (0x38, "SEC", 1, _M.IMPLICIT),
    (0x58, "CLI", 1, _M.IMPLICIT),
    (0x78, "SEI", 1, _M.IMPLICIT),
    (0xB8, "CLV", 1, _M.IMPLICIT),
    (0xD8, "CLD", 1, _M.IMPLICIT),
    (0xF8, "SED", 1, _M.IMPLICIT),
    (0xE6, "INC", 2, _M.ZERO_PAGE),
    (0xF6, "INC", 2, _M.ZERO_PAGE_X),
    (0xEE, "INC", 3, _M.ABSOLUTE),
    (0xFE, "INC", 3, _M.ABSOLUTE_X),
    (OP_JMP_ABSOLUTE, "JMP", 3, _M.ABSOLUTE),
    (OP_JMP_INDIRECT, "JMP", 3, _M.INDIRECT),
    (OP_JSR_ABSOLUTE, "JSR", 3, _M.ABSOLUTE),
    (0xA9, "LDA", 2, _M.IMMEDIATE),
    (0xA5, "LDA", 2, _M.ZERO_PAGE),
    (0xB5, "LDA", 2, _M.ZERO_PAGE_X),
    (0xAD, "LDA", 3, _M.ABSOLUTE),
    (0xBD, "LDA", 3, _M.ABSOLUTE_X),
    (0xB9, "LDA", 3, _M.ABSOLUTE_Y),
    (0xA1, "LDA", 2, _M.INDIRECT_X),
    (0xB1, "LDA", 2, _M.INDIRECT_Y),
    (0xA2, "LDX", 2, _M.IMMEDIATE),
    (0xA6, "LDX", 2, _M.ZERO_PAGE),
    (0xB6, "LDX", 2, _M.ZERO_PAGE_Y),
    (0xAE, "LDX", 3, _M.ABSOLUTE),
    (0xBE, "LDX", 3, _M.ABSOLUTE_Y),
    (0xA0, "LDY", 2, _M.IMMEDIATE),
    (0xA4, "LDY", 2, _M.ZERO_PAGE),
    (0xB4, "LDY", 2, _M.ZERO_PAGE_X),
    (0xAC, "LDY", 3, _M.ABSOLUTE),
    (0xBC, "LDY", 3, _M.ABSOLUTE_X),
    (0x4A, "LSR", 1, _M.ACCUMULATOR),
    (0x46, "LSR", 2, _M.ZERO_PAGE),
    (0x56, "LSR", 2, _M.ZERO_PAGE_X),
    (0x4E, "LSR", 3, _M.ABSOLUTE),
    (0x5E, "LSR", 3, _M.ABSOLUTE_X),
    (0xEA, "NOP", 1, _M.IMPLICIT),
    (0x09, "ORA", 2, _M.IMMEDIATE),
    (0x05, "ORA", 2, _M.ZERO_PAGE),
    (0x15, "ORA", 2, _M.ZERO_PAGE_X),
    (0x0D, "ORA", 3, _M.ABSOLUTE),
    (0x1D, "ORA", 3, _M.ABSOLUTE_X),
    (0x19, "ORA", 3, _M.ABSOLUTE_Y),
    (0x01, "ORA", 2, _M.INDIRECT_X),
    (0x11, "ORA", 2, _M.INDIRECT_Y),
    (0xAA, "TAX", 1, _M.IMPLICIT),
    (0x8A, "TXA", 1, _M.IMPLICIT),
    (0xCA, "DEX", 1, _M.IMPLICIT),
    (0xE8, "INX", 1, _M.IMPLICIT),
    (0xA8, "TAY", 1, _M.IMPLICIT),
    (0x98, "TYA", 1, _M.IMPLICIT),
    (0x88, "DEY", 1, _M.IMPLICIT),
    (0xC8, "INY", 1, _M.IMPLICIT),
    (0x2A, "ROL", 1, _M.ACCUMULATOR),
    (0x26, "ROL", 2, _M.ZERO_PAGE),
    (0x36, "ROL", 2, _M.ZERO_PAGE_X),
    (0x2E, "ROL", 3, _M.ABSOLUTE),
    (0x3E, "ROL", 3, _M.ABSOLUTE_X),
    (0x6A, "ROR", 1, _M.ACCUMULATOR),
    (0x66, "ROR", 2, _M.ZERO_PAGE),
    (0x76, "ROR", 2, _M.ZERO_PAGE_X),
    (0x6E, "ROR", 3, _M.ABSOLUTE),
    (0x7E, "ROR", 3, _M.ABSOLUTE_X),
    (0x40, "RTI", 1, _M.IMPLICIT),
    (0x60, "RTS", 1, _M.IMPLICIT),
    (0xE9, "SBC", 2, _M.IMMEDIATE),
    (0xE5, "SBC", 2, _M.ZERO_PAGE),
    (0xF5, "SBC", 2, _M.ZERO_PAGE_X),
    (0xED, "SBC", 3, _M.ABSOLUTE),
    (0xFD, "SBC", 3, _M.ABSOLUTE_X),
    (0xF9, "SBC", 3, _M.ABSOLUTE_Y),
    (0xE1, "SBC", 2, _M.INDIRECT_X),
    (0xF1, "SBC", 2, _M.INDIRECT_Y),
    (0x47, "SRE", 2, _M.ZERO_PAGE),
    (0x57, "SRE", 2, _M.ZERO_PAGE_X),
    (0x4F, "SRE", 3, _M.ABSOLUTE),
    (0x5F, "SRE", 3, _M.ABSOLUTE_X),
    (0x5B, "SRE", 3, _M.ABSOLUTE_Y),
    (0x43, "SRE", 2, _M.INDIRECT_X),
    (0x53, "SRE", 2, _M.INDIRECT_Y),
    (0x85, "STA", 2, _M.ZERO_PAGE),
    (0x95, "STA", 2, _M.ZERO_PAGE_X),
    (0x8D, "STA", 3, _M.ABSOLUTE),
    (0x9D, "STA", 3, _M.ABSOLUTE_X),
    (0x99, "STA", 3, _M.ABSOLUTE_Y),
    (0x81, "STA", 2, _M.INDIRECT_X),
    (0x91, "STA", 2, _M.INDIRECT_Y),
    (0x9A, "TXS", 1, _M.IMPLICIT),
    (0xBA, "TSX", 1, _M.IMPLICIT),
    (0x48, "PHA", 1, _M.IMPLICIT),
    (0x68, "PLA", 1, _M.IMPLICIT),
    (0x08, "PHP", 1, _M.IMPLICIT),
    (0x28, "PLP", 1, _M.IMPLICIT),
    (0x07, "SLO", 2, _M.ZERO_PAGE),
    (0x17, "SLO", 2, _M.ZERO_PAGE_X),
    (0x0F, "SLO", 3, _M.ABSOLUTE),
    (0x1F, "SLO", 3, _M.ABSOLUTE_X),
    (0x1B, "SLO", 3, _M.ABSOLUTE_Y),
    (0x03, "SLO", 2, _M.INDIRECT_X),
    (0x13, "SLO", 2, _M.INDIRECT_Y),
    (0x86, "STX", 2, _M.ZERO_PAGE),
    (0x96, "STX", 2, _M.ZERO_PAGE_Y),
    (0x8E, "STX", 3, _M.ABSOLUTE),
    (0x84, "STY", 2, _M.ZERO_PAGE),
    (0x94, "STY", 2, _M.ZERO_PAGE_X),
    (0x8C, "STY", 3, _M.ABSOLUTE),
)


def _build_table(
    rows: Sequence[Tuple[int, str, int, AddressingMode]]
) -> Mapping[int, InstructionDescriptor]:
    table: Dict[int, InstructionDescriptor] = {}
    for opcode, mnemonic, length, mode in rows:
        if opcode in table:
            raise ValueError(f"duplicate opcode definition 0x{opcode:02X}")
        table[opcode] = InstructionDescriptor(opcode, mnemonic, length, mode)
    return MappingProxyType(table)


OPCODES: Mapping[int, InstructionDescriptor] = _build_table(_OPCODE_ROWS)


def lookup(value: int) -> Optional[InstructionDescriptor]:
    """Return the descriptor for ``value`` or ``None`` for unknown bytes."""

    return OPCODES.get(value)


def is_documented(descriptor: InstructionDescriptor) -> bool:
    return descriptor.mnemonic not in UNDOCUMENTED_MNEMONICS


def classify(descriptor: InstructionDescriptor) -> FlowKind:
    if descriptor.mnemonic in BRANCH_MNEMONICS:
        return FlowKind.BRANCH
    if descriptor.mnemonic in JUMP_MNEMONICS:
        return FlowKind.JUMP
    return FlowKind.NEITHER


def operand_word(data: bytes) -> int:
    """Little-endian 16-bit operand of a three byte instruction."""

    return data[1] | (data[2] << 8)


def branch_displacement(data: bytes) -> int:
    """Signed branch displacement including the +2 instruction length bias.

    The 6502 computes relative targets from the address following the two
    byte branch instruction, so a raw displacement of ``+6`` lands eight bytes
    past the branch opcode and ``0xFA`` (``-6``) lands four bytes before it.
    """

    raw = data[1]
    if raw > 127:
        raw -= 256
    return raw + 2
