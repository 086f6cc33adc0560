"""
Assembler Tests for the MU0 assembler.

Label resolution, decimal literals and the shape of the assembled image.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from mu0_assembler import Assembler, Cell, Opcode, ParseError, assemble, parse_decimal, tokenize


SUM_SOURCE = """\
A: DEFW 5
B: DEFW 3
LDA A
ADD B
STO A
STP
"""


class TestDecimalLiterals:

    @pytest.mark.parametrize("text, value", [
        ("0", 0),
        ("7", 7),
        ("007", 7),
        ("65535", 65535),
        ("12345678901234567890", 12345678901234567890),
    ])
    def test_digits(self, text, value):
        assert parse_decimal(text) == value

    @pytest.mark.parametrize("text", ["12a", "-1", "+5", "0x10", "1_000", "١٢", "3.0"])
    def test_non_digits_rejected(self, text):
        with pytest.raises(ParseError):
            parse_decimal(text)

    def test_empty_rejected(self):
        with pytest.raises(ParseError, match="empty numeric literal"):
            parse_decimal("")

    def test_error_reports_offending_operand(self):
        with pytest.raises(ParseError) as exc:
            assemble("LDA 5\nADD X1\nSTP")
        assert exc.value.text == "X1"
        assert exc.value.line == 2
        assert exc.value.col == 5
        assert "Line 2:5" in str(exc.value)


class TestLabelResolution:

    def test_sum_program_image(self):
        program = assemble(SUM_SOURCE)
        assert len(program) == 6
        assert list(program) == [
            Cell(Opcode.NOP, 5),
            Cell(Opcode.NOP, 3),
            Cell(Opcode.LDA, 0),
            Cell(Opcode.ADD, 1),
            Cell(Opcode.STO, 0),
            Cell(Opcode.STP, 0),
        ]

    def test_duplicate_labels_resolve_to_first(self):
        program = assemble("A DEFW 1\nA DEFW 2\nLDA A\nSTP")
        assert program[2] == Cell(Opcode.LDA, 0)
        assert program.address_of("A") == 0

    def test_label_beats_number(self):
        """A label spelled like a number shadows the literal."""
        program = assemble("5 DEFW 9\nLDA 5\nSTP")
        assert program[1].operand == 0

    def test_forward_reference(self):
        program = assemble("JMP END\nSTP\nEND STP")
        assert program[0] == Cell(Opcode.JMP, 2)

    def test_defw_may_hold_an_address(self):
        program = assemble("PTR DEFW X\nX DEFW 3")
        assert program[0] == Cell(Opcode.NOP, 1)

    def test_label_match_is_exact(self):
        with pytest.raises(ParseError):
            assemble("LOOP STP\nJMP loop")

    def test_stp_and_empty_resolve_to_zero(self):
        program = assemble("STP\nEND")
        assert list(program) == [Cell(Opcode.STP, 0), Cell(Opcode.NOP, 0)]


class TestProgramShape:

    @pytest.mark.parametrize("source", [
        SUM_SOURCE,
        "STP",
        "X Y Z LDA 1\nSTP\nTAIL",
        "",
    ])
    def test_cell_count_matches_token_count(self, source):
        assert len(assemble(source)) == len(tokenize(source))

    def test_labels_and_symbols(self):
        program = assemble(SUM_SOURCE)
        assert dict(program.symbols) == {"A": 0, "B": 1}
        assert program.label_at(1) == "B"
        assert program.label_at(2) is None
        assert program.label_at(99) is None

    def test_program_is_immutable(self):
        program = assemble(SUM_SOURCE)
        with pytest.raises(AttributeError):
            program[0].operand = 1
        with pytest.raises(TypeError):
            program.cells[0] = Cell(Opcode.NOP, 1)
        with pytest.raises(TypeError):
            program.symbols["A"] = 3

    def test_program_is_hashable(self):
        first, second = assemble(SUM_SOURCE), assemble(SUM_SOURCE)
        assert hash(first) == hash(second)
        assert first == second
        assert len({first, second, assemble("STP")}) == 2

    def test_assembler_keeps_tokens(self):
        asm = Assembler()
        program = asm.assemble(SUM_SOURCE)
        assert len(asm.tokens) == len(program) == len(program.tokens)
        assert asm.program is program


class TestListing:

    def test_listing_rows(self):
        asm = Assembler()
        asm.assemble(SUM_SOURCE)
        listing = asm.get_listing().splitlines()
        assert listing[0].split() == ["ADDR", "LABEL", "OP", "VALUE", "SOURCE"]
        assert len(listing) == 2 + 6
        assert listing[2].split() == ["0", "A", "NOP", "5", "DEFW", "5"]
        assert listing[4].split() == ["2", "LDA", "0", "LDA", "A"]
        assert listing[7].split() == ["5", "STP", "0", "STP"]

    def test_listing_before_assembly(self):
        assert Assembler().get_listing() == ""

    def test_failed_assembly_keeps_previous_listing(self):
        asm = Assembler()
        asm.assemble(SUM_SOURCE)
        before = asm.get_listing()
        with pytest.raises(ParseError):
            asm.assemble("X DEFW 1\nLDA NOWHERE\nSTP")
        assert asm.get_listing() == before
        assert len(before.splitlines()) == 2 + 6
        assert len(asm.tokens) == len(asm.program)
        assert asm.symbols == {"A": 0, "B": 1}
