"""Decide whether an instruction can be re-encoded byte for byte.

BeebAsm is not a neutral assembler: given ``LDA &0012`` it silently picks the
two byte zero page encoding, and it rejects the undocumented mnemonics
outright.  Whenever the source text would not reassemble to the original
bytes the instruction is emitted as ``EQUB`` data instead.  The same step
decision drives both passes of the disassembler so that they always walk the
program through identical instruction boundaries.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .opcodes import (
    ABSOLUTE_MODES,
    InstructionDescriptor,
    is_documented,
    lookup,
    operand_word,
)


class StepKind(enum.Enum):
    CODE = "code"
    DATA = "data"


class DataReason(enum.Enum):
    """Why a step was emitted as data rather than code."""

    UNKNOWN_OPCODE = "unknown_opcode"
    UNDOCUMENTED = "undocumented"
    ZERO_PAGE_FOLD = "zero_page_fold"
    STRADDLES_CODE = "straddles_code"
    END_OF_PROGRAM = "end_of_program"


@dataclass(frozen=True)
class Step:
    """One advance of the cursor: a decoded instruction or a run of data."""

    kind: StepKind
    data: bytes
    descriptor: Optional[InstructionDescriptor] = None
    reason: Optional[DataReason] = None

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def is_code(self) -> bool:
        return self.kind is StepKind.CODE

    @property
    def complete(self) -> bool:
        """True when the step covers the descriptor's full instruction."""

        return self.descriptor is not None and len(self.data) == self.descriptor.length

    @property
    def undocumented(self) -> bool:
        return self.descriptor is not None and not is_documented(self.descriptor)


def will_assemble_identically(descriptor: InstructionDescriptor, data: bytes) -> bool:
    """Check whether BeebAsm reproduces ``data`` from the decoded text.

    An absolute operand below ``&100`` is folded into the zero page form by
    the assembler, which changes both the opcode and the instruction length.
    """

    if descriptor.mode in ABSOLUTE_MODES:
        if operand_word(data) < 0x100:
            return False
    return True


def straddles(cursor: int, length: int, pending: Optional[int]) -> bool:
    """True when ``length`` bytes from ``cursor`` run past ``pending``."""

    if pending is None:
        return False
    return cursor + length > pending


def classify_step(program: bytes, cursor: int, pending: Optional[int]) -> Step:
    """Classify the bytes starting at ``cursor``.

    ``pending`` is the next known code position (in-buffer) that has not yet
    been reached, or ``None``.
    """

    descriptor = lookup(program[cursor])
    if descriptor is None:
        return Step(
            StepKind.DATA,
            bytes(program[cursor : cursor + 1]),
            reason=DataReason.UNKNOWN_OPCODE,
        )

    if straddles(cursor, descriptor.length, pending):
        assert pending is not None
        return Step(
            StepKind.DATA,
            bytes(program[cursor:pending]),
            descriptor,
            DataReason.STRADDLES_CODE,
        )

    data = bytes(program[cursor : cursor + descriptor.length])
    if len(data) < descriptor.length:
        return Step(StepKind.DATA, data, descriptor, DataReason.END_OF_PROGRAM)
    if not is_documented(descriptor):
        return Step(StepKind.DATA, data, descriptor, DataReason.UNDOCUMENTED)
    if not will_assemble_identically(descriptor, data):
        return Step(StepKind.DATA, data, descriptor, DataReason.ZERO_PAGE_FOLD)
    return Step(StepKind.CODE, data, descriptor)
