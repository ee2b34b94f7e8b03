import pytest

from bbcdisasm.opcodes import (
    OPCODES,
    AddressingMode,
    FlowKind,
    branch_displacement,
    classify,
    is_documented,
    lookup,
    operand_word,
)


def test_lookup_immediate_load():
    descriptor = lookup(0xA9)

    assert descriptor is not None
    assert descriptor.mnemonic == "LDA"
    assert descriptor.length == 2
    assert descriptor.mode is AddressingMode.IMMEDIATE


def test_lookup_unknown_byte_returns_none():
    assert lookup(0x02) is None
    assert lookup(0xFF) is None


def test_table_covers_documented_set_plus_selected_undocumented():
    documented = [d for d in OPCODES.values() if is_documented(d)]
    undocumented = {d.mnemonic for d in OPCODES.values() if not is_documented(d)}

    assert len(documented) == 151
    assert undocumented == {"ANC", "SLO", "SRE"}


def test_table_is_read_only():
    with pytest.raises(TypeError):
        OPCODES[0x02] = OPCODES[0xEA]  # type: ignore[index]


@pytest.mark.parametrize(
    "opcode,expected",
    [
        (0xD0, FlowKind.BRANCH),
        (0x10, FlowKind.BRANCH),
        (0x4C, FlowKind.JUMP),
        (0x6C, FlowKind.JUMP),
        (0x20, FlowKind.JUMP),
        (0xAD, FlowKind.NEITHER),
        (0x60, FlowKind.NEITHER),
    ],
)
def test_classify_flow_kind(opcode, expected):
    assert classify(OPCODES[opcode]) is expected


def test_lengths_follow_addressing_mode():
    for descriptor in OPCODES.values():
        if descriptor.mode in {AddressingMode.IMPLICIT, AddressingMode.ACCUMULATOR}:
            if classify(descriptor) is FlowKind.BRANCH:
                assert descriptor.length == 2
            else:
                assert descriptor.length == 1
        elif descriptor.mode in {
            AddressingMode.ABSOLUTE,
            AddressingMode.ABSOLUTE_X,
            AddressingMode.ABSOLUTE_Y,
            AddressingMode.INDIRECT,
        }:
            assert descriptor.length == 3
        else:
            assert descriptor.length == 2


def test_operand_word_is_little_endian():
    assert operand_word(b"\xAD\x34\x12") == 0x1234


@pytest.mark.parametrize(
    "raw,expected",
    [
        (0x00, 2),
        (0x06, 8),
        (0x7F, 129),
        (0xFA, -4),
        (0x80, -126),
        (0xA7, -87),
    ],
)
def test_branch_displacement_includes_instruction_length(raw, expected):
    assert branch_displacement(bytes([0xD0, raw])) == expected
