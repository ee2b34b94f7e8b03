"""Two-pass 6502 disassembler producing BeebAsm source."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO

from .analysis import BranchAnalysis, BranchAnalyzer, ProgramWindow, walk
from .decoder import decode
from .formatter import format_data, format_header, format_instruction, format_label
from .symbols import Variable, merge_variables, parse_variable


logger = logging.getLogger(__name__)


class AnalysisMismatchError(RuntimeError):
    """The decoding pass disagreed with the branch analysis."""


class Disassembler:
    """Disassemble a window of a 6502 program.

    The program buffer and configuration are fixed at construction; all
    analysis state is rebuilt on every call, so repeated calls over the same
    configuration produce identical listings and a single instance never
    leaks labels or used symbols from one run into the next.
    """

    def __init__(
        self,
        program: bytes,
        *,
        offset: int = 0,
        length: Optional[int] = None,
        branch_adjust: int = 0,
        code_addresses: Iterable[int] = (),
        variables: Iterable[Variable] = (),
    ) -> None:
        self.program = bytes(program)
        if length is None:
            length = max(len(self.program) - offset, 0)
        self.window = ProgramWindow(offset, length, branch_adjust)
        self.window.validate(len(self.program))
        self.code_addresses = tuple(code_addresses)
        self.variables: Sequence[Variable] = merge_variables(variables)

    @property
    def load_address(self) -> int:
        return self.window.branch_adjust

    def add_variable(self, name: str, value: int) -> None:
        self.variables = merge_variables(self.variables, [Variable(name, value)])

    def add_variable_definition(self, definition: str) -> None:
        """Add a ``name=value`` definition, raising ``ValueError`` if malformed."""

        self.variables = merge_variables(self.variables, [parse_variable(definition)])

    def analyse(self) -> BranchAnalysis:
        positions = self.window.code_positions(self.code_addresses)
        return BranchAnalyzer(self.program, self.window, positions).analyse()

    def iter_lines(self) -> Iterator[str]:
        """Yield the header followed by one line per label, instruction or data run."""

        positions = self.window.code_positions(self.code_addresses)
        analysis = BranchAnalyzer(self.program, self.window, positions).analyse()

        yield from format_header(
            analysis.used_os_calls,
            analysis.used_os_vectors,
            self.variables,
            self.load_address,
        )

        adjust = self.window.branch_adjust
        labels_emitted = 0
        consumed = 0
        for position, step in walk(self.program, self.window, positions):
            address = position + adjust
            if address not in analysis.reachable:
                raise AnalysisMismatchError(
                    f"instruction at &{address:04X} was not seen by branch analysis"
                )

            index = analysis.labels.get(address)
            if index is not None:
                labels_emitted += 1
                yield format_label(index)

            if step.is_code:
                assert step.descriptor is not None
                operand = decode(
                    step.descriptor,
                    step.data,
                    position,
                    adjust,
                    analysis.labels,
                    self.variables,
                )
                yield format_instruction(step.descriptor.mnemonic, operand, address, step.data)
            else:
                mnemonic = step.descriptor.mnemonic if step.undocumented and step.descriptor else ""
                yield format_data(step.data, address, mnemonic)
            consumed = position + step.length

        if labels_emitted != len(analysis.labels):
            raise AnalysisMismatchError(
                f"emitted {labels_emitted} labels but analysis produced {len(analysis.labels)}"
            )
        if consumed > self.window.end:
            logger.debug(
                "final instruction extends %d byte(s) past the requested window",
                consumed - self.window.end,
            )

    def disassemble(self, sink: TextIO) -> None:
        """Write the listing to ``sink`` line by line."""

        for line in self.iter_lines():
            sink.write(line)
            sink.write("\n")

    def generate_listing(self) -> str:
        buffer = io.StringIO()
        self.disassemble(buffer)
        return buffer.getvalue()

    def write_listing(self, output_path: Path) -> None:
        output_path.write_text(self.generate_listing(), "utf-8")


def disassemble(
    program: bytes,
    *,
    offset: int = 0,
    length: Optional[int] = None,
    branch_adjust: int = 0,
    code_addresses: Iterable[int] = (),
    variables: Iterable[Variable] = (),
) -> List[str]:
    """Convenience wrapper returning the listing as a list of lines."""

    disassembler = Disassembler(
        program,
        offset=offset,
        length=length,
        branch_adjust=branch_adjust,
        code_addresses=code_addresses,
        variables=variables,
    )
    return list(disassembler.iter_lines())
