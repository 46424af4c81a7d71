# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Classified extraction errors.

Each error is raised where it is detected and converted into a `Diagnostic`
at the boundary that owns its blast radius:

- `LexicalError`    aborts one file,
- `StructuralError` aborts one directive table,
- `SemanticError`   aborts one directive entry,
- `ConfigError`     aborts the run (bad config / token vocabulary file).

They are `ValueError` subclasses so they can travel through plain parsing
plumbing, but they always carry a code and a best-effort span.
"""

from __future__ import annotations

from typing import Optional

from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span


class ExtractError(ValueError):
	"""Base class for classified extraction failures."""

	phase = "extract"

	def __init__(self, code: str, message: str, *, span: Optional[Span] = None, notes: Optional[list[str]] = None) -> None:
		super().__init__(f"{code}: {message}")
		self.code = code
		self.span = span or Span()
		self.notes = list(notes or [])

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(
			message=str(self),
			code=self.code,
			phase=self.phase,
			severity="error",
			span=self.span,
			notes=list(self.notes),
		)


class LexicalError(ExtractError):
	"""Unterminated comment or malformed quoting."""

	phase = "lex"


class StructuralError(ExtractError):
	"""A directive table or one of its elements does not have the expected shape."""

	phase = "table"


class SemanticError(ExtractError):
	"""A directive's bitmask cannot be classified."""

	phase = "resolve"

	def __init__(
		self,
		code: str,
		message: str,
		*,
		directive: str,
		token: Optional[str] = None,
		span: Optional[Span] = None,
	) -> None:
		super().__init__(code, message, span=span)
		self.directive = directive
		self.token = token


class UnknownTokenError(SemanticError):
	def __init__(self, token: str, *, directive: str, span: Optional[Span] = None) -> None:
		super().__init__(
			"E-MASK-UNKNOWN-TOKEN",
			f"directive '{directive}': bitmask token '{token}' is not a recognized scope, arity or modifier",
			directive=directive,
			token=token,
			span=span,
		)


class ArityError(SemanticError):
	"""Zero or more than one arity token in a single bitmask expression."""

	def __init__(self, message: str, *, directive: str, token: Optional[str] = None, span: Optional[Span] = None) -> None:
		super().__init__("E-MASK-ARITY", f"directive '{directive}': {message}", directive=directive, token=token, span=span)


class ScopeError(SemanticError):
	def __init__(self, *, directive: str, span: Optional[Span] = None) -> None:
		super().__init__(
			"E-MASK-NO-SCOPE",
			f"directive '{directive}': bitmask has no scope token",
			directive=directive,
			span=span,
		)


class ConfigError(ExtractError):
	"""Invalid generator configuration or token vocabulary."""

	phase = "config"

	def __init__(self, message: str, *, span: Optional[Span] = None) -> None:
		super().__init__("E-CONFIG", message, span=span)


__all__ = [
	"ExtractError",
	"LexicalError",
	"StructuralError",
	"SemanticError",
	"UnknownTokenError",
	"ArityError",
	"ScopeError",
	"ConfigError",
]
