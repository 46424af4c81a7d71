# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bitmask resolution: RawDirectiveEntry -> DirectiveRecord.

Each mask identifier is looked up in an explicitly supplied `TokenRegistry`.
Scope bits accumulate into the scope set, modifiers into the modifier set and
exactly one identifier must supply the arity. Any deviation is a
`SemanticError` that excludes the entry; nothing is defaulted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span
from ngxgen.errors import ArityError, ScopeError, SemanticError, UnknownTokenError
from ngxgen.registry import Arity, TokenKind, TokenRegistry
from ngxgen.table_parser import RawDirectiveEntry


@dataclass(frozen=True)
class DirectiveRecord:
	"""Resolved, immutable catalog unit."""

	name: str
	scopes: FrozenSet[str]
	arity: Arity
	modifiers: FrozenSet[str] = frozenset()
	# Provenance does not take part in equality: two records that only differ
	# in where they were declared describe the same directive.
	span: Span = field(default_factory=Span, compare=False)

	def same_shape(self, other: "DirectiveRecord") -> bool:
		"""Scope set and arity match (the merge policy's notion of identity)."""
		return self.scopes == other.scopes and self.arity == other.arity

	def describe(self) -> str:
		parts = sorted(self.scopes) + sorted(self.modifiers) + [str(self.arity)]
		return "|".join(parts)


def resolve_mask(
	name: str,
	mask: Sequence[str],
	registry: TokenRegistry,
	*,
	mask_spans: Sequence[Span] = (),
	span: Optional[Span] = None,
) -> DirectiveRecord:
	"""
	Classify `mask` identifiers into a DirectiveRecord for directive `name`.

	Raises `UnknownTokenError` for the first unrecognized identifier,
	`ArityError` when the mask has no arity or a second one, and `ScopeError`
	when the mask names no scope.
	"""
	span = span or Span()
	scopes: set[str] = set()
	modifiers: set[str] = set()
	arity: Optional[Arity] = None
	for idx, ident in enumerate(mask):
		tok_span = mask_spans[idx] if idx < len(mask_spans) else span
		cls = registry.lookup(ident)
		if cls.kind is TokenKind.UNKNOWN:
			raise UnknownTokenError(ident, directive=name, span=tok_span)
		if cls.kind is TokenKind.SCOPE:
			assert cls.scope is not None
			scopes.add(cls.scope)
		elif cls.kind is TokenKind.MODIFIER:
			assert cls.modifier is not None
			modifiers.add(cls.modifier)
		else:
			assert cls.arity is not None
			if arity is not None:
				raise ArityError(
					f"second arity token '{ident}' ({cls.arity}) after {arity}; a bitmask takes exactly one",
					directive=name,
					token=ident,
					span=tok_span,
				)
			arity = cls.arity
	if arity is None:
		raise ArityError("bitmask has no arity token", directive=name, span=span)
	if not scopes:
		raise ScopeError(directive=name, span=span)
	return DirectiveRecord(
		name=name,
		scopes=frozenset(scopes),
		arity=arity,
		modifiers=frozenset(modifiers),
		span=span,
	)


def resolve_entry(entry: RawDirectiveEntry, registry: TokenRegistry) -> DirectiveRecord:
	return resolve_mask(
		entry.name,
		entry.mask,
		registry,
		mask_spans=entry.mask_spans,
		span=entry.span,
	)


def resolve_entries(
	entries: Iterable[RawDirectiveEntry],
	registry: TokenRegistry,
) -> Tuple[List[DirectiveRecord], List[Diagnostic]]:
	"""Resolve a batch; a failing entry is reported and skipped, siblings still resolve."""
	records: List[DirectiveRecord] = []
	diagnostics: List[Diagnostic] = []
	for entry in entries:
		try:
			records.append(resolve_entry(entry, registry))
		except SemanticError as err:
			diag = err.to_diagnostic()
			if entry.table:
				diag.notes.append(f"in table '{entry.table}'; directive '{entry.name}' excluded from the catalog")
			diagnostics.append(diag)
	return records, diagnostics


__all__ = ["DirectiveRecord", "resolve_mask", "resolve_entry", "resolve_entries"]
