"""First pass: discover branch targets and the OS symbols a program uses.

Labels can only be printed once every forward reference is known, and whether
a candidate target is genuine depends on the complete set of instruction
boundaries.  The first pass therefore walks the whole window, collecting

* every reachable instruction start (as an adjusted runtime address),
* every branch/jump target candidate,
* the MOS calls and vectors referenced by absolute operands,

and only then filters the candidates and numbers the survivors.  Candidates
that land in the middle of a decoded instruction, typically the result of
data bytes that happen to look like a branch, are dropped.

The walk itself is shared with the second pass via :func:`walk` so that both
passes agree on every instruction boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, Iterator, Mapping, Optional, Sequence, Set, Tuple

from .fidelity import Step, classify_step
from .opcodes import (
    AddressingMode,
    FlowKind,
    branch_displacement,
    classify,
    operand_word,
)
from .symbols import OS_CALLS, vector_base


logger = logging.getLogger(__name__)

LABEL_FORMAT = "label_{index}"


def label_name(index: int) -> str:
    return LABEL_FORMAT.format(index=index)


@dataclass(frozen=True)
class ProgramWindow:
    """The slice of the program buffer to disassemble.

    ``branch_adjust`` is added to in-buffer positions to obtain the runtime
    address, normally the load address of the program.
    """

    offset: int
    length: int
    branch_adjust: int = 0

    @property
    def end(self) -> int:
        return self.offset + self.length

    def address(self, position: int) -> int:
        return position + self.branch_adjust

    def validate(self, program_length: int) -> None:
        if self.offset < 0:
            raise ValueError("offset cannot be before start of program")
        if self.length < 0:
            raise ValueError("length cannot be negative")
        if self.branch_adjust < 0:
            raise ValueError("branch adjustment cannot be negative")
        if self.length and self.offset >= program_length:
            raise ValueError("offset cannot be past end of program")
        if self.end > program_length:
            raise ValueError(
                f"window [{self.offset}, {self.end}) exceeds program size {program_length}"
            )

    def code_positions(self, addresses: Iterable[int]) -> Tuple[int, ...]:
        """Convert adjusted code addresses into sorted in-buffer positions.

        Addresses before the window start can never be reached and are
        ignored.
        """

        positions: Set[int] = set()
        for address in addresses:
            position = address - self.branch_adjust
            if position < self.offset:
                logger.warning(
                    "ignoring code address &%04X before the disassembly window", address
                )
                continue
            positions.add(position)
        return tuple(sorted(positions))


def walk(
    program: bytes,
    window: ProgramWindow,
    code_positions: Sequence[int] = (),
) -> Iterator[Tuple[int, Step]]:
    """Yield ``(position, step)`` for every step through the window.

    ``code_positions`` must be ascending in-buffer positions.  Each one is
    consumed exactly once, when the cursor arrives at it; an instruction that
    would run across the next pending position is cut short at that position.
    The final step may extend past ``window.end``.
    """

    index = 0
    cursor = window.offset
    previous = cursor
    while cursor < window.end:
        if index < len(code_positions):
            target = code_positions[index]
            if previous <= target <= cursor:
                cursor = target
                index += 1
        previous = cursor

        pending: Optional[int] = code_positions[index] if index < len(code_positions) else None
        step = classify_step(program, cursor, pending)
        yield cursor, step
        cursor += step.length


@dataclass(frozen=True)
class BranchAnalysis:
    """Immutable result of the first pass."""

    labels: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    reachable: FrozenSet[int] = frozenset()
    used_os_calls: FrozenSet[int] = frozenset()
    used_os_vectors: FrozenSet[int] = frozenset()
    rejected: FrozenSet[int] = frozenset()


class BranchAnalyzer:
    """Run the first pass over a program window."""

    def __init__(
        self,
        program: bytes,
        window: ProgramWindow,
        code_positions: Sequence[int] = (),
    ) -> None:
        self.program = program
        self.window = window
        self.code_positions = tuple(code_positions)

    def analyse(self) -> BranchAnalysis:
        reachable: Set[int] = set()
        candidates: Set[int] = set()
        used_calls: Set[int] = set()
        used_vectors: Set[int] = set()

        for position, step in walk(self.program, self.window, self.code_positions):
            address = self.window.address(position)
            reachable.add(address)

            # Truncated steps and unknown bytes carry no flow information.
            if not step.complete:
                continue
            descriptor = step.descriptor
            assert descriptor is not None

            kind = classify(descriptor)
            if kind is FlowKind.BRANCH:
                candidates.add(address + branch_displacement(step.data))
            elif kind is FlowKind.JUMP:
                if descriptor.mode is AddressingMode.INDIRECT:
                    continue
                target = operand_word(step.data)
                candidates.add(target)
                if target in OS_CALLS:
                    used_calls.add(target)
            elif descriptor.mode is AddressingMode.ABSOLUTE:
                base = vector_base(operand_word(step.data))
                if base is not None:
                    used_vectors.add(base)

        survivors = sorted(candidates & reachable)
        rejected = frozenset(candidates - reachable)
        labels = {address: index for index, address in enumerate(survivors)}

        logger.debug(
            "branch analysis: %d instruction starts, %d candidate targets, %d labelled, %d rejected",
            len(reachable),
            len(candidates),
            len(labels),
            len(rejected),
        )

        return BranchAnalysis(
            labels=MappingProxyType(labels),
            reachable=frozenset(reachable),
            used_os_calls=frozenset(used_calls),
            used_os_vectors=frozenset(used_vectors),
            rejected=rejected,
        )
