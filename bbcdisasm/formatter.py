"""Fixed-column text rendering for disassembly listings.

Every body line follows the same layout::

     LDA #&C8               \\ &1900 A9 C8       ..
     EQUB &AD,&12,&00       \\ &1902 UD SLO      ...
    ^ leading space         ^ column 25         ^ column 45

The backslash starts a BeebAsm comment, so the address, hex dump and
printable rendering never reach the assembler.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

from .analysis import label_name
from .symbols import OS_CALLS, OS_VECTORS, Variable

COMMENT_COLUMN = 24
PRINTABLE_COLUMN = 44
COMMENT_MARKER = "\\ "

BANNER_RULE = "\\ " + "*" * 78
BANNER_TEXT = "This disassembly was produced by bbcdisasm"


def _pad(text: str, column: int) -> str:
    """Pad ``text`` to ``column``, always leaving at least one space."""

    return text + " " * max(column - len(text), 1)


def printable(data: bytes) -> str:
    return "".join(chr(b) if 32 <= b <= 126 else "." for b in data)


def format_label(index: int) -> str:
    return f".{label_name(index)}"


def format_instruction(mnemonic: str, operand: str, address: int, data: bytes) -> str:
    text = f" {mnemonic} {operand}" if operand else f" {mnemonic}"
    dump = " ".join([f"&{address:04X}"] + [f"{b:02X}" for b in data])
    line = _pad(text, COMMENT_COLUMN) + COMMENT_MARKER + dump
    return _pad(line, PRINTABLE_COLUMN) + printable(data)


def format_data(data: bytes, address: int, undocumented: str = "") -> str:
    text = " EQUB " + ",".join(f"&{b:02X}" for b in data)
    line = _pad(text, COMMENT_COLUMN) + COMMENT_MARKER + f"&{address:04X} "
    if undocumented:
        line += f"UD {undocumented}"
    return _pad(line, PRINTABLE_COLUMN) + printable(data)


def format_header(
    used_os_calls: Iterable[int] = (),
    used_os_vectors: Iterable[int] = (),
    variables: Sequence[Variable] = (),
    load_address: int = 0,
) -> List[str]:
    """Return the header lines that precede the disassembled body.

    Only the MOS calls and vectors the program references are defined, in
    address order.  User variables are always defined since the caller asked
    for them.  A non-zero load address sets the assembly origin.
    """

    lines = [BANNER_RULE, "\\", f"\\ {BANNER_TEXT}", "\\", BANNER_RULE, ""]

    lines.extend(_symbol_block("OS Call Addresses", used_os_calls, OS_CALLS, 6))
    lines.extend(_symbol_block("OS Vector Addresses", used_os_vectors, OS_VECTORS, 5))

    if variables:
        lines.append("\\ Variables")
        lines.extend(variable.render() for variable in variables)
        lines.append("")

    if load_address:
        lines.extend([f"CODE% = &{load_address:X}", "", "ORG CODE%", ""])
    return lines


def _symbol_block(
    title: str, used: Iterable[int], names: Mapping[int, str], width: int
) -> List[str]:
    addresses = sorted(set(used))
    if not addresses:
        return []
    lines = [f"\\ {title}"]
    for address in addresses:
        lines.append(f"{names[address]:<{width}} = &{address:X}")
    lines.append("")
    return lines
