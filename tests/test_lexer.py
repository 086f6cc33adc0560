"""
Lexer Tests for the MU0 assembler.

Covers word matching order, label attachment, end-of-input handling and
source positions carried by tokens and errors.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import pytest
from mu0_assembler.lexer import Lexer, ParseError, SourceSpan, Token, TokenKind, format_token, tokenize
from mu0_assembler.opcodes import Opcode


class TestWordMatching:
    """Opcode, DEFW and label recognition."""

    def test_operand_opcodes(self):
        for mnem in ("ADD", "SUB", "LDA", "STO", "JMP", "JGE", "JNE"):
            toks = tokenize(f"{mnem} 7")
            assert len(toks) == 1, mnem
            assert toks[0].kind is TokenKind.OPCODE
            assert toks[0].opcode is Opcode[mnem]
            assert toks[0].operand == "7"
            assert toks[0].label is None

    def test_stp_takes_no_operand(self):
        toks = tokenize("STP LDA 1")
        assert [t.opcode for t in toks] == [Opcode.STP, Opcode.LDA]
        assert toks[0].operand == ""
        assert toks[1].operand == "1"

    def test_defw_is_data(self):
        toks = tokenize("DEFW 42")
        assert toks[0].kind is TokenKind.DATA
        assert toks[0].opcode is Opcode.NOP
        assert toks[0].operand == "42"

    def test_opcode_consumes_next_word_whatever_it_is(self):
        toks = tokenize("LDA STP")
        assert len(toks) == 1
        assert toks[0].operand == "STP"

    def test_matching_is_case_sensitive(self):
        """'lda' is not an opcode, so it and '5' are both labels."""
        toks = tokenize("lda 5")
        assert len(toks) == 1
        assert toks[0].kind is TokenKind.EMPTY
        assert toks[0].label == "lda"

    def test_nop_is_not_a_source_opcode(self):
        toks = tokenize("NOP STP")
        assert len(toks) == 1
        assert toks[0].opcode is Opcode.STP
        assert toks[0].label == "NOP"

    def test_unknown_three_letter_word_is_label(self):
        toks = tokenize("FOO LDA 3")
        assert toks[0].label == "FOO"
        assert toks[0].opcode is Opcode.LDA
        assert toks[0].operand == "3"


class TestLabels:

    def test_label_without_colon(self):
        toks = tokenize("X DEFW 1")
        assert toks[0].label == "X"

    def test_trailing_colon_is_not_part_of_label(self):
        toks = tokenize("A: DEFW 5")
        assert toks[0].label == "A"
        assert toks[0].operand == "5"

    def test_lone_colon_is_a_label(self):
        assert tokenize(": STP")[0].label == ":"

    def test_label_on_its_own_line(self):
        toks = tokenize("LOOP\n    SUB ONE\n")
        assert len(toks) == 1
        assert toks[0].label == "LOOP"
        assert toks[0].opcode is Opcode.SUB

    def test_first_of_stacked_labels_wins(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mu0_assembler.lexer"):
            toks = tokenize("X Y LDA 5")
        assert len(toks) == 1
        assert toks[0].label == "X"
        assert "'Y' discarded" in caplog.text

    def test_dangling_label_gives_empty_token(self):
        toks = tokenize("STP\nEND")
        assert len(toks) == 2
        assert toks[1].kind is TokenKind.EMPTY
        assert toks[1].opcode is Opcode.NOP
        assert toks[1].label == "END"


class TestEndOfInput:

    def test_empty_source(self):
        assert tokenize("") == []
        assert tokenize("   \n\t\n") == []

    def test_trailing_whitespace_adds_no_token(self):
        assert len(tokenize("STP\n\n   \n")) == 1

    def test_line_breaks_carry_no_meaning(self):
        a = tokenize("A DEFW 5")
        b = tokenize("A\nDEFW\n5")
        assert [(t.kind, t.label, t.operand) for t in a] == [(t.kind, t.label, t.operand) for t in b]

    def test_missing_operand(self):
        with pytest.raises(ParseError) as exc:
            tokenize("STP\nLDA")
        assert exc.value.reason == "missing operand"
        assert exc.value.text == "LDA"
        assert exc.value.line == 2
        assert exc.value.col == 1

    def test_defw_missing_literal(self):
        with pytest.raises(ParseError, match="missing operand"):
            tokenize("X DEFW   ")


class TestSpans:

    def test_operand_span_points_into_source(self):
        source = "A: DEFW 5\n  LDA A"
        toks = tokenize(source)
        lda = toks[1]
        assert lda.operand_span.text(source) == "A"
        assert lda.span.text(source) == "LDA"
        assert (lda.line, lda.col) == (2, 7)
        assert toks[0].label_span.text(source) == "A:"

    def test_span_bounds_checked(self):
        with pytest.raises(IndexError):
            SourceSpan(3, 10).text("abc")
        with pytest.raises(IndexError):
            SourceSpan(-1, 1).text("abc")

    def test_lexer_does_not_modify_source(self):
        source = "A DEFW 1\nLDA A\nSTP\n"
        lexer = Lexer(source)
        lexer.tokenize()
        assert lexer.source == source


class TestFormatToken:

    def test_formats(self):
        toks = tokenize("A: DEFW 5\nLDA A\nSTP\nEND")
        assert [format_token(t) for t in toks] == [
            "A: Word(5)",
            ": LDA(A)",
            ": STP",
            "END:",
        ]

    def test_labelled_stp(self):
        assert format_token(Token(TokenKind.OPCODE, Opcode.STP, label="DONE")) == "DONE: STP"
