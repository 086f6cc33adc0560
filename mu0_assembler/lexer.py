"""
Lexer / Tokenizer for the MU0 assembler.

Converts source text into one Token per instruction or data word.

The dialect has no punctuation and no comments: words are separated by
whitespace and every line has the shape

    [label[:]] OPCODE operand
    [label[:]] STP
    [label[:]] DEFW literal

Word matching order (decides label-vs-opcode ties):
    1. STP                               -> opcode, no operand
    2. ADD SUB LDA STO JMP JGE JNE       -> opcode, next word is the operand
    3. DEFW                              -> data word, next word is the literal
    4. anything else                     -> label for the next token

Matching is exact and case-sensitive, so "lda" or "NOP" are labels.
Line breaks carry no meaning; "A DEFW 5" split over two lines lexes the same.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .opcodes import DEFW, Opcode, SOURCE_OPCODES

__all__ = ['Lexer', 'Token', 'TokenKind', 'SourceSpan', 'Mu0Error', 'ParseError',
           'tokenize', 'format_token']

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────

class Mu0Error(Exception):
    """Base class for every error raised by the assembler or emulator."""


class ParseError(Mu0Error):
    """Raised when source text cannot be assembled.

    Carries the reason, the offending text and its source position so the
    caller can point at the bad word without re-scanning the input.
    """
    def __init__(self, reason: str, text: str = "", line: int = 0, col: int = 0):
        self.reason = reason
        self.text = text
        self.line = line
        self.col = col
        loc = f"Line {line}:{col}: " if line else ""
        detail = f": {text!r}" if text else ""
        super().__init__(f"{loc}{reason}{detail}")


# ──────────────────────────────────────────────
# Tokens
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class SourceSpan:
    """Read-only (offset, length) view into the source text."""
    offset: int
    length: int
    line: int = 1
    col: int = 1

    @property
    def end(self) -> int:
        return self.offset + self.length

    def text(self, source: str) -> str:
        if self.offset < 0 or self.length < 0 or self.end > len(source):
            raise IndexError(f"span {self.offset}+{self.length} outside source of length {len(source)}")
        return source[self.offset:self.end]


class TokenKind(enum.Enum):
    OPCODE = "OPCODE"
    DATA = "DATA"
    EMPTY = "EMPTY"   # label with nothing after it


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    opcode: Opcode = Opcode.NOP
    operand: str = ""
    label: Optional[str] = None
    span: Optional[SourceSpan] = None          # the opcode / DEFW word
    operand_span: Optional[SourceSpan] = None
    label_span: Optional[SourceSpan] = None

    @property
    def line(self) -> int:
        span = self.operand_span or self.span or self.label_span
        return span.line if span else 0

    @property
    def col(self) -> int:
        span = self.operand_span or self.span or self.label_span
        return span.col if span else 0

    def __repr__(self):
        return f"Token({self.kind.name}, {self.opcode.name}, {self.operand!r}, label={self.label!r}, L{self.line}:{self.col})"


def format_token(tok: Token) -> str:
    """One-line dump of a token: 'label: LDA(A)', 'label: Word(5)', 'label: STP'."""
    label = tok.label or ""
    if tok.kind is TokenKind.DATA:
        return f"{label}: Word({tok.operand})"
    if tok.kind is TokenKind.EMPTY:
        return f"{label}:"
    if tok.opcode is Opcode.STP:
        return f"{label}: STP"
    return f"{label}: {tok.opcode.mnemonic}({tok.operand})"


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class Lexer:
    """Splits MU0 source into Tokens, attaching leading labels to instructions."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_whitespace(self):
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self._advance()

    def _read_word(self) -> Optional[SourceSpan]:
        """Return the span of the next word, or None at end of input."""
        self._skip_whitespace()
        if self.pos >= len(self.source):
            return None
        start, line, col = self.pos, self.line, self.col
        while self.pos < len(self.source) and not self.source[self.pos].isspace():
            self._advance()
        return SourceSpan(start, self.pos - start, line, col)

    def _read_operand(self, word: SourceSpan) -> SourceSpan:
        operand = self._read_word()
        if operand is None:
            raise ParseError("missing operand", word.text(self.source), word.line, word.col)
        return operand

    def tokenize(self) -> List[Token]:
        self.tokens = []
        label: Optional[Tuple[str, SourceSpan]] = None

        while True:
            word = self._read_word()
            if word is None:
                break
            text = word.text(self.source)
            op = SOURCE_OPCODES.get(text)

            if op is not None and not op.takes_operand:
                tok = Token(TokenKind.OPCODE, op, span=word)
            elif op is not None:
                operand = self._read_operand(word)
                tok = Token(TokenKind.OPCODE, op, operand.text(self.source),
                            span=word, operand_span=operand)
            elif text == DEFW:
                operand = self._read_operand(word)
                tok = Token(TokenKind.DATA, Opcode.NOP, operand.text(self.source),
                            span=word, operand_span=operand)
            else:
                name = _label_name(text)
                if label is None:
                    label = (name, word)
                else:
                    logger.warning("L%d:%d: label %r discarded, instruction already labelled %r",
                                   word.line, word.col, name, label[0])
                continue

            if label is not None:
                tok = replace(tok, label=label[0], label_span=label[1])
                label = None
            logger.debug("token %s", tok)
            self.tokens.append(tok)

        if label is not None:
            self.tokens.append(Token(TokenKind.EMPTY, label=label[0], label_span=label[1]))

        return self.tokens


def _label_name(word: str) -> str:
    # "LOOP:" and "LOOP" name the same cell
    if len(word) > 1 and word.endswith(":"):
        return word[:-1]
    return word


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()
