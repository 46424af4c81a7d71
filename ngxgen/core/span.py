# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source location attached to tokens, records and diagnostics.

A Span is always best-effort: the scanner knows line/column for every token,
but records loaded back from a serialized catalog may only know their file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_token(cls, tok: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a lark Token (or anything carrying the same
		`line`/`column`/`end_line`/`end_column` attributes).
		"""
		if tok is None:
			return cls(file=file)
		if isinstance(tok, cls):
			return tok
		return cls(
			file=file,
			line=getattr(tok, "line", None),
			column=getattr(tok, "column", None),
			end_line=getattr(tok, "end_line", None),
			end_column=getattr(tok, "end_column", None),
		)

	def short(self) -> str:
		"""Format as `file:line:column` with `?` for unknown parts."""
		f = self.file or "<unknown>"
		l = self.line if self.line is not None else "?"
		c = self.column if self.column is not None else "?"
		return f"{f}:{l}:{c}"


__all__ = ["Span"]
