"""Well known BBC Micro addresses and user supplied variables."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence

# ---------------------------------------------------------------------------
# MOS entry points
# ---------------------------------------------------------------------------

# Calls through these addresses are rendered by name and the name is defined
# in the listing header.
OS_CALLS: Mapping[int, str] = MappingProxyType(
    {
        0xFFB9: "OSRDRM",
        0xFFBF: "OSEVEN",
        0xFFC2: "GSINIT",
        0xFFC5: "GSREAD",
        0xFFC8: "NVRDCH",  # non-vectored OSRDCH
        0xFFCB: "NVWRCH",  # non-vectored OSWRCH
        0xFFCE: "OSFIND",
        0xFFE0: "OSRDCH",
        0xFFE3: "OSASCI",
        0xFFE7: "OSNEWL",
        0xFFEE: "OSWRCH",
        0xFFF1: "OSWORD",
        0xFFF4: "OSBYTE",
        0xFFF7: "OSCLI",
    }
)


# ---------------------------------------------------------------------------
# MOS vectors
# ---------------------------------------------------------------------------

# Each vector is a two byte pointer; only the low byte address is listed.
OS_VECTORS: Mapping[int, str] = MappingProxyType(
    {
        0x200: "USERV",
        0x202: "BRKV",
        0x204: "IRQ1V",
        0x206: "IRQ2V",
        0x208: "CLIV",
        0x20A: "BYTEV",
        0x20C: "WORDV",
        0x20E: "WRCHV",
        0x210: "RDCHV",
        0x212: "FILEV",
        0x214: "ARGV",
        0x216: "BGETV",
        0x218: "BPUTV",
        0x21A: "GBPBV",
        0x21C: "FINDV",
        0x21E: "FSCV",
        0x220: "EVENTV",
        0x222: "UPTV",
        0x224: "NETV",
        0x226: "VDUV",
        0x228: "KEYV",
        0x22A: "INSV",
        0x22C: "REMV",
        0x22E: "CNPV",
        0x230: "IND1V",  # not in the Advanced User Guide
        0x232: "IND2V",
        0x234: "IND3V",
    }
)


def vector_base(address: int) -> Optional[int]:
    """Return the registered vector address covering ``address``.

    Both bytes of a vector resolve to the even base address.
    """

    if address in OS_VECTORS:
        return address
    base = address & ~1
    if base in OS_VECTORS:
        return base
    return None


# ---------------------------------------------------------------------------
# User variables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Variable:
    """Named constant defined in the listing header and used for operands."""

    name: str
    value: int

    def render(self) -> str:
        return f"{self.name} = {self.value}"


def parse_number(text: str) -> int:
    """Parse a Python integer literal or a BeebAsm ``&`` hex literal."""

    cleaned = text.strip()
    if cleaned.startswith("&"):
        return int(cleaned[1:], 16)
    return int(cleaned, 0)


def parse_variable(definition: str) -> Variable:
    """Parse a ``name=value`` definition as given on the command line."""

    name, sep, value = definition.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"invalid variable definition {definition!r}")
    if not (name[0].isalpha() or name[0] == "_") or not all(
        ch.isalnum() or ch == "_" for ch in name
    ):
        raise ValueError(f"invalid variable name {name!r}")
    try:
        number = parse_number(value)
    except ValueError:
        raise ValueError(f"non numeric value {value!r}") from None
    return Variable(name, number)


def find_variable(variables: Sequence[Variable], value: int) -> Optional[Variable]:
    """Return the first variable whose value equals ``value``."""

    for variable in variables:
        if variable.value == value:
            return variable
    return None


def merge_variables(*groups: Iterable[Variable]) -> Sequence[Variable]:
    """Concatenate variable groups; a later definition replaces an earlier one."""

    merged: Dict[str, Variable] = {}
    for group in groups:
        for variable in group:
            merged.pop(variable.name, None)
            merged[variable.name] = variable
    return tuple(merged.values())
