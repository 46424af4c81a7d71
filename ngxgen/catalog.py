# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Catalog aggregation across source files.

The fold is an explicit ordered reduce: the aggregator consumes records in
the caller's file order and applies, per directive name,

- first occurrence                    -> insert,
- same scopes+arity, same modifiers   -> keep existing (DuplicateDefinition note),
- same scopes+arity, other modifiers  -> keep existing, ConflictEvent,
- different scopes or arity           -> replace (later wins), OverrideEvent.

The catalog keeps first-insertion order; a replaced directive stays where it
was first seen. Identical input order always yields an identical catalog and
event log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from ngxgen.resolver import DirectiveRecord


@dataclass(frozen=True)
class OverrideEvent:
	"""A later definition with a different shape replaced an earlier one."""

	name: str
	discarded: DirectiveRecord
	replacement: DirectiveRecord

	def describe(self) -> str:
		return (
			f"directive '{self.name}' redefined at {self.replacement.span.short()} "
			f"({self.replacement.describe()}) overrides {self.discarded.span.short()} "
			f"({self.discarded.describe()})"
		)


@dataclass(frozen=True)
class ConflictEvent:
	"""A later definition agrees on scopes and arity but not on modifiers; the earlier one is kept."""

	name: str
	existing: DirectiveRecord
	incoming: DirectiveRecord

	def describe(self) -> str:
		return (
			f"directive '{self.name}' at {self.incoming.span.short()} has modifiers "
			f"{sorted(self.incoming.modifiers)} but {self.existing.span.short()} has "
			f"{sorted(self.existing.modifiers)}; keeping the first definition"
		)


@dataclass(frozen=True)
class DuplicateDefinition:
	name: str
	kept: DirectiveRecord
	duplicate: DirectiveRecord


MergeEvent = Union[OverrideEvent, ConflictEvent]


class DirectiveCatalog(Mapping[str, DirectiveRecord]):
	"""Ordered name -> DirectiveRecord mapping; only `CatalogAggregator` mutates it."""

	def __init__(self, records: Iterable[DirectiveRecord] = ()) -> None:
		self._records: Dict[str, DirectiveRecord] = {}
		for record in records:
			self._records[record.name] = record

	def __getitem__(self, name: str) -> DirectiveRecord:
		return self._records[name]

	def __iter__(self) -> Iterator[str]:
		return iter(self._records)

	def __len__(self) -> int:
		return len(self._records)

	def __repr__(self) -> str:
		return f"DirectiveCatalog({list(self._records.values())!r})"

	def records(self) -> List[DirectiveRecord]:
		return list(self._records.values())

	def _put(self, record: DirectiveRecord) -> None:
		self._records[record.name] = record


@dataclass
class MergeResult:
	catalog: DirectiveCatalog
	events: List[MergeEvent] = field(default_factory=list)
	duplicates: List[DuplicateDefinition] = field(default_factory=list)

	@property
	def overrides(self) -> List[OverrideEvent]:
		return [e for e in self.events if isinstance(e, OverrideEvent)]

	@property
	def conflicts(self) -> List[ConflictEvent]:
		return [e for e in self.events if isinstance(e, ConflictEvent)]


class CatalogAggregator:
	"""Accumulator for the ordered catalog fold."""

	def __init__(self) -> None:
		self._catalog = DirectiveCatalog()
		self._events: List[MergeEvent] = []
		self._duplicates: List[DuplicateDefinition] = []

	def merge(self, record: DirectiveRecord) -> Optional[MergeEvent]:
		"""Fold one record into the catalog; return the event it produced, if any."""
		existing = self._catalog.get(record.name)
		if existing is None:
			self._catalog._put(record)
			return None
		if not existing.same_shape(record):
			self._catalog._put(record)
			event: MergeEvent = OverrideEvent(name=record.name, discarded=existing, replacement=record)
			self._events.append(event)
			return event
		if existing.modifiers != record.modifiers:
			event = ConflictEvent(name=record.name, existing=existing, incoming=record)
			self._events.append(event)
			return event
		self._duplicates.append(DuplicateDefinition(name=record.name, kept=existing, duplicate=record))
		return None

	def merge_all(self, records: Iterable[DirectiveRecord]) -> None:
		for record in records:
			self.merge(record)

	def result(self) -> MergeResult:
		return MergeResult(
			catalog=DirectiveCatalog(self._catalog.records()),
			events=list(self._events),
			duplicates=list(self._duplicates),
		)


def fold_catalog(per_file_records: Sequence[Sequence[DirectiveRecord]]) -> MergeResult:
	"""Fold per-file record lists, in the given order, into one catalog."""
	aggregator = CatalogAggregator()
	for records in per_file_records:
		aggregator.merge_all(records)
	return aggregator.result()


__all__ = [
	"OverrideEvent",
	"ConflictEvent",
	"DuplicateDefinition",
	"MergeEvent",
	"DirectiveCatalog",
	"MergeResult",
	"CatalogAggregator",
	"fold_catalog",
]
