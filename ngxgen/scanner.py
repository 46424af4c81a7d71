# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Comment-stripping scanner for C/C++ module sources.

The token vocabulary lives in `c_tokens.lark` next to this module and is
driven through `Lark.lex()` with the basic lexer: we only need a flat token
stream, the directive-table shape is recognized by `ngxgen.table_parser`.

Comments, whitespace and preprocessor lines never reach the table parser, so
the placement and style of comments cannot change what gets extracted and an
`#if` around a table entry does not split the table. Macros are not expanded.
Comment markers inside string/char literals stay part of the literal because
the literal terminals are matched as a whole.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

from lark import Lark, Token

from ngxgen.core.span import Span
from ngxgen.errors import LexicalError

_GRAMMAR_PATH = Path(__file__).with_name("c_tokens.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_LEXER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
)

COMMENT_TYPES = frozenset({"LINE_COMMENT", "BLOCK_COMMENT"})
SKIP_TYPES = COMMENT_TYPES | {"WS", "PREPROC"}

_UNTERMINATED = {
	"UNTERMINATED_COMMENT": ("E-LEX-UNTERMINATED-COMMENT", "unterminated block comment"),
	"UNTERMINATED_STRING": ("E-LEX-UNTERMINATED-STRING", "unterminated string literal"),
	"UNTERMINATED_CHAR": ("E-LEX-UNTERMINATED-CHAR", "unterminated character literal"),
}


def _iter_raw_tokens(text: str, file: Optional[str]) -> Iterator[Token]:
	"""
	Yield every token of `text` (comments and whitespace included).

	Raises `LexicalError` at the first unterminated comment or literal; the
	error points at the opening marker.
	"""
	for tok in _LEXER.lex(text):
		bad = _UNTERMINATED.get(tok.type)
		if bad is not None:
			code, what = bad
			raise LexicalError(code, what, span=Span.from_token(tok, file=file))
		yield tok


def scan_tokens(text: str, *, file: Optional[str] = None) -> List[Token]:
	"""Return the token stream of `text` without comments, whitespace or preprocessor lines."""
	return [tok for tok in _iter_raw_tokens(text, file) if tok.type not in SKIP_TYPES]


def strip_comments(text: str, *, file: Optional[str] = None) -> str:
	"""
	Return `text` with all comments removed.

	Preprocessor lines are copied verbatim, comments on them included.
	Line comments are dropped up to (not including) the newline; block comments
	are replaced by the newlines they contained (or a single space) so line
	numbers of the remaining text do not move.
	"""
	parts: list[str] = []
	for tok in _iter_raw_tokens(text, file):
		if tok.type == "LINE_COMMENT":
			continue
		if tok.type == "BLOCK_COMMENT":
			newlines = tok.count("\n")
			# A comment still separates tokens: `a/**/b` must not become `ab`.
			parts.append("\n" * newlines if newlines else " ")
			continue
		parts.append(str(tok))
	return "".join(parts)


__all__ = ["scan_tokens", "strip_comments", "COMMENT_TYPES"]
