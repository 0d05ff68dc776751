import pytest

from wsdiag import WSContext, WSError, WSSyntaxError, WSUnexpectedEOF, WSLiteralOverflow
from wsparse import Tokenizer, Instruction, parseSource, parseNumber, SPACE, TAB, LF, EOF
from wsutil import ws


def ops(program):
    return [(i.op, i.param) for i in program.instructions]


def test_tokenizer_skips_comments_and_counts_lines():
    tok = Tokenizer(b"a \tb\nc\n")
    assert tok.next() == SPACE
    assert tok.next() == TAB
    assert tok.line == 1
    assert tok.next() == LF
    assert tok.line == 2
    assert tok.next() == LF
    assert tok.line == 3
    assert tok.next() == EOF
    assert tok.next() == EOF


def test_comment_only_source_is_empty_program():
    prg = parseSource(b"just.a_comment;nothing-else!", WSContext())
    assert prg.instructions == []
    assert prg.targets == {}


def test_every_opcode_parses():
    source = ws(
        "SS STL"     # push 1
        "SLS"        # dup
        "SLT"        # swap
        "SLL"        # pop
        "TSSS TSST TSSL TSTS TSTT"
        "TTS TTT"
        "LSS TL"     # mark "\t"
        "LST TL"     # call
        "LSL TL"     # jump
        "LTS TL"     # jz
        "LTT TL"     # jlz
        "LTL"        # ret
        "LLL"        # end
        "TLSS TLST TLTS TLTT"
    )
    prg = parseSource(source, WSContext())
    assert [i.op for i in prg.instructions] == [
        "push", "dup", "swap", "pop",
        "add", "sub", "mul", "div", "mod",
        "sth", "ldh",
        "mrk", "call", "jmp", "jz", "jlz", "ret", "end",
        "wrc", "wri", "rdc", "rdi",
    ]
    assert prg.instructions[0].param == " \t"
    assert prg.instructions[12].param == "\t"


def test_mark_records_instruction_index():
    prg = parseSource(ws("SSSTL LSSSTL SLL"), WSContext())
    assert prg.targets == {" \t": 1}
    assert ops(prg)[1] == ("mrk", " \t")


def test_duplicate_mark_last_wins_by_default():
    prg = parseSource(ws("LSSTL SSSTL LSSTL"), WSContext())
    assert prg.targets == {"\t": 2}


def test_duplicate_mark_is_fatal_when_warnings_are():
    with pytest.raises(WSError) as e:
        parseSource(ws("LSSTL LSSTL"), WSContext(warnings=1))
    assert e.value.lvl == 1
    assert "more than once" in e.value.msg


def test_instructions_are_immutable():
    instr = Instruction("push", " \t", 1)
    with pytest.raises(AttributeError):
        instr.op = "pop"


def test_instruction_line_numbers():
    prg = parseSource(ws("SSSTL SLS"), WSContext())
    assert [i.line for i in prg.instructions] == [1, 2]


@pytest.mark.parametrize("source, line", [
    ("TSL", 2), ("TSTL", 2), ("TTL", 2), ("TLL", 3),
    ("TLSL", 3), ("TLTL", 3), ("LLS", 3), ("ST", 1),
])
def test_syntax_errors_carry_line(source, line):
    with pytest.raises(WSSyntaxError) as e:
        parseSource(ws("TSSS" + source), WSContext())
    assert e.value.line == line


@pytest.mark.parametrize("source", ["SSST", "T", "TS", "TSS", "L", "LS", "LSST", "TLS", "SL"])
def test_unexpected_end_of_input(source):
    with pytest.raises(WSUnexpectedEOF):
        parseSource(ws(source), WSContext())


def test_unexpected_end_of_input_reports_line():
    with pytest.raises(WSUnexpectedEOF) as e:
        parseSource(ws("SLS SLS") + b"  \t", WSContext())
    assert e.value.line == 3


@pytest.mark.parametrize("value", [0, 1, -1, 2, 7, -7, 255, 1000, -123456, (1 << 30) - 1, -((1 << 30) - 1)])
def test_number_decoding(value):
    bits = bin(abs(value))[2:]
    literal = ("\t" if value < 0 else " ") + bits.replace("0", " ").replace("1", "\t")
    assert parseNumber(literal) == value


def test_number_with_leading_zero_bits():
    assert parseNumber("   \t \t") == 5
    assert parseNumber("\t  \t") == -1


def test_empty_number_literal_is_zero():
    assert parseNumber("") == 0
    assert parseNumber(" ") == 0
    assert parseNumber("\t") == 0


def test_number_overflow():
    parseNumber(" " + "\t" * 30)
    with pytest.raises(WSLiteralOverflow):
        parseNumber(" " + "\t" * 31)
    with pytest.raises(WSLiteralOverflow):
        parseNumber("\t" + " " * 40)
