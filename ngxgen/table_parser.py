# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Directive-table locator and entry parser.

Recognizes the nginx module registration idiom in a comment-free token stream:

	static ngx_command_t  ngx_http_foo_commands[] = {
	    { ngx_string("foo"),
	      NGX_HTTP_MAIN_CONF|NGX_CONF_TAKE1,
	      ngx_conf_set_str_slot,
	      NGX_HTTP_MAIN_CONF_OFFSET,
	      offsetof(ngx_http_foo_conf_t, foo),
	      NULL },

	      ngx_null_command
	};

This is a small state machine over tokens, not a C grammar: only the table
header, the brace/comma structure of the initializer, the name field and the
mask field are interpreted. Every other record field is carried opaquely.

A malformed element aborts its whole table (`StructuralError`); the caller
continues with the next table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from lark import Token

from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span
from ngxgen.errors import StructuralError

DEFAULT_TABLE_TYPE = "ngx_command_t"

# name, mask, set handler, conf offset, field offset, post
RECORD_FIELD_COUNT = 6

NAME_WRAPPER = "ngx_string"
SENTINEL_NAMES = frozenset({"ngx_null_command"})
NULL_NAME_FIELD = "ngx_null_string"

_OPEN = {"LBRACE": "RBRACE", "LPAR": "RPAR", "LSQB": "RSQB"}
_CLOSE = frozenset(_OPEN.values())


@dataclass(frozen=True)
class RawDirectiveEntry:
	"""One table record as written in the source, before mask resolution."""

	name: str
	mask: Tuple[str, ...]
	mask_spans: Tuple[Span, ...]
	file: Optional[str]
	line: Optional[int]
	column: Optional[int] = None
	table: Optional[str] = None

	@property
	def span(self) -> Span:
		return Span(file=self.file, line=self.line, column=self.column)


@dataclass
class TableLiteral:
	"""A located `<table_type> name[] = { ... }` initializer."""

	name: str
	file: Optional[str]
	header: Token
	open_brace: Token
	body: List[Token] = field(default_factory=list)
	close_brace: Optional[Token] = None

	@property
	def span(self) -> Span:
		return Span.from_token(self.header, file=self.file)

	@property
	def terminated(self) -> bool:
		return self.close_brace is not None


def _find_close(tokens: Sequence[Token], open_idx: int) -> Optional[int]:
	"""
	Return the index of the bracket closing `tokens[open_idx]`, or None.

	Mismatched closers are not diagnosed here: the table shape checks report
	them with better context.
	"""
	depth = 0
	for idx in range(open_idx, len(tokens)):
		ty = tokens[idx].type
		if ty in _OPEN:
			depth += 1
		elif ty in _CLOSE:
			depth -= 1
			if depth == 0:
				return idx
	return None


def _match_header(tokens: Sequence[Token], idx: int) -> Optional[Tuple[Token, int]]:
	"""
	Match `NAME [ ... ] = {` right after the table type at `idx`.

	Returns (table-name token, index of the opening brace) or None.
	"""
	pos = idx + 1
	if pos >= len(tokens) or tokens[pos].type != "NAME":
		return None
	name_tok = tokens[pos]
	pos += 1
	if pos >= len(tokens) or tokens[pos].type != "LSQB":
		return None
	pos += 1
	# Optional explicit dimension: `cmds[4]`, `cmds[N_CMDS + 1]`.
	while pos < len(tokens) and tokens[pos].type not in ("RSQB", "SEMI", "LBRACE"):
		pos += 1
	if pos >= len(tokens) or tokens[pos].type != "RSQB":
		return None
	pos += 1
	if pos >= len(tokens) or tokens[pos].type != "EQUAL":
		return None
	pos += 1
	if pos >= len(tokens) or tokens[pos].type != "LBRACE":
		return None
	return name_tok, pos


def find_directive_tables(
	tokens: Sequence[Token],
	*,
	file: Optional[str] = None,
	table_type: str = DEFAULT_TABLE_TYPE,
) -> Iterator[TableLiteral]:
	"""
	Yield every `<table_type> name[] = { ... }` literal in `tokens`.

	Declarations without an initializer (`extern ngx_command_t x[];`) and uses
	of the type elsewhere (`ngx_command_t *cmd`) are skipped. An initializer
	whose closing brace is missing is yielded with `close_brace=None` and
	ends the scan.
	"""
	idx = 0
	while idx < len(tokens):
		tok = tokens[idx]
		if tok.type != "NAME" or tok.value != table_type:
			idx += 1
			continue
		header = _match_header(tokens, idx)
		if header is None:
			idx += 1
			continue
		name_tok, open_idx = header
		close_idx = _find_close(tokens, open_idx)
		if close_idx is None:
			yield TableLiteral(
				name=name_tok.value,
				file=file,
				header=tok,
				open_brace=tokens[open_idx],
				body=list(tokens[open_idx + 1 :]),
			)
			return
		yield TableLiteral(
			name=name_tok.value,
			file=file,
			header=tok,
			open_brace=tokens[open_idx],
			body=list(tokens[open_idx + 1 : close_idx]),
			close_brace=tokens[close_idx],
		)
		idx = close_idx + 1


def _split_top_level(tokens: Sequence[Token]) -> List[List[Token]]:
	"""Split on commas that are not nested inside (), [] or {}."""
	parts: List[List[Token]] = [[]]
	depth = 0
	for tok in tokens:
		if tok.type in _OPEN:
			depth += 1
		elif tok.type in _CLOSE:
			depth -= 1
		if tok.type == "COMMA" and depth == 0:
			parts.append([])
			continue
		parts[-1].append(tok)
	return parts


def _drop_trailing_empty(parts: List[List[Token]]) -> List[List[Token]]:
	# C allows one trailing comma in an initializer list.
	if len(parts) > 1 and not parts[-1]:
		return parts[:-1]
	return parts


def _is_sentinel(element: Sequence[Token]) -> bool:
	if len(element) == 1 and element[0].type == "NAME" and element[0].value in SENTINEL_NAMES:
		return True
	# Expanded form: { ngx_null_string, 0, NULL, 0, 0, NULL }
	if len(element) >= 2 and element[0].type == "LBRACE" and element[1].type == "NAME":
		return element[1].value == NULL_NAME_FIELD
	return False


def _decode_name(fields: Sequence[Token], table: TableLiteral) -> Tuple[str, Token]:
	"""
	Accept `ngx_string("name")` or a bare `"name"`; return the unquoted name.

	The content between the quotes is kept verbatim (no escape processing).
	"""
	string_tok: Optional[Token] = None
	if len(fields) == 1 and fields[0].type == "STRING":
		string_tok = fields[0]
	elif (
		len(fields) == 4
		and fields[0].type == "NAME"
		and fields[0].value == NAME_WRAPPER
		and fields[1].type == "LPAR"
		and fields[2].type == "STRING"
		and fields[3].type == "RPAR"
	):
		string_tok = fields[2]
	if string_tok is None:
		raise StructuralError(
			"E-TABLE-NAME",
			f"table '{table.name}': directive name must be a quoted string or {NAME_WRAPPER}(\"...\")",
			span=Span.from_token(fields[0], file=table.file),
		)
	name = string_tok.value[1:-1]
	if not name:
		raise StructuralError(
			"E-TABLE-NAME",
			f"table '{table.name}': directive name is empty",
			span=Span.from_token(string_tok, file=table.file),
		)
	return name, string_tok


def _decode_mask(fields: Sequence[Token], table: TableLiteral, directive: str) -> Tuple[Tuple[str, ...], Tuple[Span, ...]]:
	"""Accept `IDENT ('|' IDENT)*`."""
	idents: List[str] = []
	spans: List[Span] = []
	expect_ident = True
	for tok in fields:
		if expect_ident and tok.type == "NAME":
			idents.append(tok.value)
			spans.append(Span.from_token(tok, file=table.file))
			expect_ident = False
			continue
		if not expect_ident and tok.type == "PIPE":
			expect_ident = True
			continue
		raise StructuralError(
			"E-TABLE-MASK",
			f"table '{table.name}', directive '{directive}': bitmask must be identifiers joined by '|', found '{tok.value}'",
			span=Span.from_token(tok, file=table.file),
		)
	if expect_ident:
		last = fields[-1]
		raise StructuralError(
			"E-TABLE-MASK",
			f"table '{table.name}', directive '{directive}': bitmask ends with '|'",
			span=Span.from_token(last, file=table.file),
		)
	return tuple(idents), tuple(spans)


def _parse_record(element: Sequence[Token], table: TableLiteral) -> RawDirectiveEntry:
	first = element[0]
	if first.type != "LBRACE" or _find_close(element, 0) != len(element) - 1:
		raise StructuralError(
			"E-TABLE-ELEMENT",
			f"table '{table.name}': expected a '{{ ... }}' directive record or the sentinel, found '{first.value}'",
			span=Span.from_token(first, file=table.file),
		)
	fields = _drop_trailing_empty(_split_top_level(element[1:-1]))
	for pos, fld in enumerate(fields):
		if not fld:
			raise StructuralError(
				"E-TABLE-EMPTY-FIELD",
				f"table '{table.name}': field {pos + 1} of directive record is empty",
				span=Span.from_token(first, file=table.file),
			)
	if len(fields) != RECORD_FIELD_COUNT:
		raise StructuralError(
			"E-TABLE-FIELD-COUNT",
			f"table '{table.name}': directive record has {len(fields)} fields, expected {RECORD_FIELD_COUNT}",
			span=Span.from_token(first, file=table.file),
		)
	name, name_tok = _decode_name(fields[0], table)
	mask, mask_spans = _decode_mask(fields[1], table, name)
	return RawDirectiveEntry(
		name=name,
		mask=mask,
		mask_spans=mask_spans,
		file=table.file,
		line=name_tok.line,
		column=name_tok.column,
		table=table.name,
	)


def parse_table(table: TableLiteral) -> List[RawDirectiveEntry]:
	"""
	Parse every record of `table` up to its sentinel.

	Raises `StructuralError` for the first malformed element, a missing
	closing brace, a missing sentinel, or anything after the sentinel; no
	entries of the table are returned in that case.
	"""
	if not table.terminated:
		raise StructuralError(
			"E-TABLE-UNTERMINATED",
			f"table '{table.name}': initializer is not closed before end of file",
			span=table.span,
		)
	entries: List[RawDirectiveEntry] = []
	elements = _drop_trailing_empty(_split_top_level(table.body)) if table.body else []
	saw_sentinel = False
	for element in elements:
		if saw_sentinel:
			anchor = element[0] if element else table.close_brace
			raise StructuralError(
				"E-TABLE-AFTER-SENTINEL",
				f"table '{table.name}': element after the sentinel",
				span=Span.from_token(anchor, file=table.file),
			)
		if not element:
			raise StructuralError(
				"E-TABLE-ELEMENT",
				f"table '{table.name}': empty element in initializer",
				span=table.span,
			)
		if _is_sentinel(element):
			saw_sentinel = True
			continue
		entries.append(_parse_record(element, table))
	if not saw_sentinel:
		raise StructuralError(
			"E-TABLE-NO-SENTINEL",
			f"table '{table.name}': missing terminating {sorted(SENTINEL_NAMES)[0]}",
			span=table.span,
		)
	return entries


def parse_directive_tables(
	tokens: Sequence[Token],
	*,
	file: Optional[str] = None,
	table_type: str = DEFAULT_TABLE_TYPE,
) -> Tuple[List[RawDirectiveEntry], List[Diagnostic]]:
	"""
	Locate and parse every directive table in `tokens`.

	Returns the entries of all well-formed tables (source order) and one
	diagnostic per aborted table.
	"""
	entries: List[RawDirectiveEntry] = []
	diagnostics: List[Diagnostic] = []
	for table in find_directive_tables(tokens, file=file, table_type=table_type):
		try:
			entries.extend(parse_table(table))
		except StructuralError as err:
			diag = err.to_diagnostic()
			diag.notes.append(f"table '{table.name}' declared at {table.span.short()} was skipped")
			diagnostics.append(diag)
	return entries, diagnostics


__all__ = [
	"DEFAULT_TABLE_TYPE",
	"RECORD_FIELD_COUNT",
	"RawDirectiveEntry",
	"TableLiteral",
	"find_directive_tables",
	"parse_table",
	"parse_directive_tables",
]
