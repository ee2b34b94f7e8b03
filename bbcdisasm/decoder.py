"""Render instruction operands in BeebAsm syntax."""

from __future__ import annotations

from typing import Mapping, Sequence

from .analysis import label_name
from .opcodes import (
    AddressingMode,
    FlowKind,
    InstructionDescriptor,
    branch_displacement,
    classify,
    operand_word,
)
from .symbols import OS_CALLS, OS_VECTORS, Variable, find_variable


def decode(
    descriptor: InstructionDescriptor,
    data: bytes,
    cursor: int,
    branch_adjust: int,
    labels: Mapping[int, int],
    variables: Sequence[Variable] = (),
) -> str:
    """Return the operand text for a complete instruction.

    ``cursor`` is the in-buffer position of the opcode and ``labels`` maps
    surviving target addresses to their label index.
    """

    kind = classify(descriptor)
    if kind is FlowKind.JUMP and descriptor.mode is AddressingMode.ABSOLUTE:
        return _jump_target(operand_word(data), labels)
    if kind is FlowKind.BRANCH:
        return _branch_target(data, cursor, branch_adjust, labels)

    mode = descriptor.mode
    if mode is AddressingMode.IMPLICIT:
        return ""
    if mode is AddressingMode.ACCUMULATOR:
        return "A"
    if mode is AddressingMode.IMMEDIATE:
        return f"#&{data[1]:02X}"
    if mode is AddressingMode.ABSOLUTE:
        return _absolute(operand_word(data), variables)
    if mode is AddressingMode.ZERO_PAGE:
        return f"&{data[1]:02X}"
    if mode is AddressingMode.ZERO_PAGE_X:
        return f"&{data[1]:02X},X"
    if mode is AddressingMode.ZERO_PAGE_Y:
        return f"&{data[1]:02X},Y"
    if mode is AddressingMode.INDIRECT:
        return f"(&{operand_word(data):04X})"
    if mode is AddressingMode.ABSOLUTE_X:
        return f"&{operand_word(data):04X},X"
    if mode is AddressingMode.ABSOLUTE_Y:
        return f"&{operand_word(data):04X},Y"
    if mode is AddressingMode.INDIRECT_X:
        return f"(&{data[1]:02X},X)"
    if mode is AddressingMode.INDIRECT_Y:
        return f"(&{data[1]:02X}),Y"
    raise ValueError(f"unsupported addressing mode {mode!r}")


def _jump_target(target: int, labels: Mapping[int, int]) -> str:
    name = OS_CALLS.get(target)
    if name is not None:
        return name
    index = labels.get(target)
    if index is not None:
        return label_name(index)
    return f"&{target:04X}"


def _branch_target(
    data: bytes, cursor: int, branch_adjust: int, labels: Mapping[int, int]
) -> str:
    offset = branch_displacement(data)
    index = labels.get(cursor + offset + branch_adjust)
    if index is not None:
        return label_name(index)
    # BeebAsm reads a bare number as an absolute address, so an unlabelled
    # target is expressed relative to the assembly address instead.
    return f"P%{offset:+d}"


def _absolute(value: int, variables: Sequence[Variable]) -> str:
    variable = find_variable(variables, value)
    if variable is not None:
        return variable.name
    name = OS_VECTORS.get(value)
    if name is not None:
        return name
    name = OS_VECTORS.get(value & ~1)
    if name is not None:
        return f"{name}+1"
    return f"&{value:04X}"
