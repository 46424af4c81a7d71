# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure shared by the scanner, table parser, resolver and
driver.

Every classified failure in the engine ends up as one of these values so a run
can report the complete set of problems at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .span import Span


@dataclass
class Diagnostic:
	"""Represents an extraction diagnostic (error/warning/note)."""

	message: str
	code: str | None = None
	# Pipeline phase that produced the diagnostic: "lex", "table", "resolve",
	# "merge", "config" or "driver". JSON output and tests key on it.
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity == "error"


def has_errors(diagnostics: list[Diagnostic]) -> bool:
	return any(d.is_error for d in diagnostics)


__all__ = ["Diagnostic", "has_errors"]
