import pytest

from bbcdisasm.fidelity import (
    DataReason,
    StepKind,
    classify_step,
    straddles,
    will_assemble_identically,
)
from bbcdisasm.opcodes import OPCODES


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\xAD\x12\x00", False),
        (b"\xBD\xFF\x00", False),
        (b"\xB9\x80\x00", False),
        (b"\xAD\x00\x01", True),
        (b"\xA5\x12", True),
        (b"\xA9\x00", True),
    ],
)
def test_zero_page_operands_in_absolute_form_do_not_round_trip(data, expected):
    assert will_assemble_identically(OPCODES[data[0]], data) is expected


def test_straddles_is_strict():
    assert straddles(0, 3, 1)
    assert straddles(0, 3, 2)
    assert not straddles(0, 3, 3)
    assert not straddles(0, 3, None)


def test_classify_documented_instruction_as_code():
    step = classify_step(b"\xA9\xC8", 0, None)

    assert step.kind is StepKind.CODE
    assert step.data == b"\xA9\xC8"
    assert step.descriptor is OPCODES[0xA9]
    assert step.complete


def test_classify_unknown_byte_as_single_data_byte():
    step = classify_step(b"\x02\xA9\xC8", 0, None)

    assert step.kind is StepKind.DATA
    assert step.data == b"\x02"
    assert step.reason is DataReason.UNKNOWN_OPCODE
    assert not step.complete


def test_classify_undocumented_instruction_as_annotated_data():
    step = classify_step(b"\x0F\x00\x30", 0, None)

    assert step.kind is StepKind.DATA
    assert step.data == b"\x0F\x00\x30"
    assert step.undocumented
    assert step.reason is DataReason.UNDOCUMENTED


def test_classify_zero_page_fold_as_data():
    step = classify_step(b"\xAD\x12\x00", 0, None)

    assert step.kind is StepKind.DATA
    assert step.reason is DataReason.ZERO_PAGE_FOLD
    assert step.complete


def test_classify_truncates_at_pending_code_position():
    step = classify_step(b"\xEA\xAD\x34\x12", 1, 2)

    assert step.kind is StepKind.DATA
    assert step.data == b"\xAD"
    assert step.reason is DataReason.STRADDLES_CODE
    assert not step.complete


def test_classify_instruction_running_off_the_buffer():
    step = classify_step(b"\xEA\x20\x00", 1, None)

    assert step.kind is StepKind.DATA
    assert step.data == b"\x20\x00"
    assert step.reason is DataReason.END_OF_PROGRAM
