import pytest

from wsdiag import WSContext, WSSyntaxError, WSLiteralOverflow, WSError
from wsparse import parseSource, parseNumber, NUMBER_OPS
from wsasm import assemble, encode, encodeNumber, encodeLabel
from dews import disassemble, formatInstruction
from wsutil import ws, run

PROGRAM = ws(
    "SS STSSSSSTL"      # push 65
    "SS TTSTL"          # push -5
    "SLS SLT SLL"
    "TSSS TSST TSSL TSTS TSTT"
    "TTS TTT"
    "LSS STL"           # mrk st
    "LST STL"           # call st
    "LSL TL"            # jmp t
    "LTS SSL"           # jz ss
    "LTT L"             # jlz (empty label)
    "LTL LLL"
    "TLSS TLST TLTS TLTT"
)


def canonical(instructions):
    result = []
    for instr in instructions:
        if instr.op in NUMBER_OPS:
            result.append((instr.op, parseNumber(instr.param)))
        else:
            result.append((instr.op, instr.param))
    return result


def test_disassembly_lines():
    lines = disassemble(PROGRAM, WSContext())
    assert lines[:6] == ["push 65", "push -5", "dup", "swap", "pop", "add"]
    assert "mrk st" in lines
    assert "call st" in lines
    assert "jmp t" in lines
    assert "jz ss" in lines
    assert "jlz" in lines
    assert lines[-4:] == ["wrc", "wri", "rdc", "rdi"]


def test_disassemble_then_assemble_reproduces_program():
    ctxt = WSContext()
    original = parseSource(PROGRAM, ctxt).instructions
    text = "\n".join(disassemble(PROGRAM, ctxt))
    rebuilt = assemble(text, ctxt)
    assert canonical(rebuilt) == canonical(original)
    assert canonical(parseSource(encode(rebuilt), ctxt).instructions) == canonical(original)


@pytest.mark.parametrize("value", [0, 1, -1, 42, -42, 65535, -(1 << 29), (1 << 30) - 1, -((1 << 30) - 1)])
def test_number_encoding_round_trip(value):
    assert parseNumber(encodeNumber(value)) == value


def test_number_encoding_overflow():
    with pytest.raises(WSLiteralOverflow):
        encodeNumber(1 << 30)


def test_label_encoding():
    assert encodeLabel("stTs") == " \t\t "


def test_assembler_accepts_comments_case_and_blank_lines():
    text = "; header\n\nPUSH 2 ; two\n  Dup\nMUL\nwri\n\nMrk TS\nend"
    instructions = assemble(text, WSContext())
    assert [i.op for i in instructions] == ["push", "dup", "mul", "wri", "mrk", "end"]
    assert instructions[4].param == "\t "
    assert run(encode(instructions)) == "4"


@pytest.mark.parametrize("text", ["push", "push st", "add 3", "jmp 4", "bogus", "push 1 2"])
def test_assembler_rejects_bad_lines(text):
    with pytest.raises(WSSyntaxError):
        assemble(text, WSContext())


def test_assembler_reports_position():
    with pytest.raises(WSSyntaxError) as e:
        assemble("dup\ndup\nadd 3\n", WSContext())
    assert e.value.line == 3


def test_assembler_rejects_large_numbers():
    with pytest.raises(WSLiteralOverflow):
        assemble("push 2147483647", WSContext())


def test_missing_label_is_info_only():
    assert assemble("jmp", WSContext())[0].param == ""
    with pytest.raises(WSError):
        assemble("jmp", WSContext(warnings=2))


def test_format_instruction_without_parameter():
    instr = parseSource(ws("TSSS"), WSContext()).instructions[0]
    assert formatInstruction(instr) == "add"
