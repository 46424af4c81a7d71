# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Extraction pipeline.

Per file:   scan -> locate/parse tables -> resolve masks   (pure, no shared state)
Per run:    ordered sequential fold of the per-file records into one catalog

Files are independent until the fold, so `extract_sources` may run the
per-file stage on a thread pool; the fold itself always walks the results in
the caller's order so the override policy stays deterministic.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ngxgen.catalog import (
	CatalogAggregator,
	ConflictEvent,
	DirectiveCatalog,
	DuplicateDefinition,
	MergeEvent,
	OverrideEvent,
)
from ngxgen.config import DEFAULT_SUFFIXES, GenerateConfig, split_mask
from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span
from ngxgen.errors import ConfigError, LexicalError, SemanticError
from ngxgen.registry import TokenRegistry
from ngxgen.resolver import DirectiveRecord, resolve_entries, resolve_mask
from ngxgen.scanner import scan_tokens
from ngxgen.table_parser import DEFAULT_TABLE_TYPE, parse_directive_tables

logger = logging.getLogger(__name__)

Source = Tuple[str, str]  # (path, text)


@dataclass
class FileExtraction:
	"""Everything one source file contributed (records in source order)."""

	path: str
	records: List[DirectiveRecord] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class ExtractionResult:
	catalog: DirectiveCatalog
	events: List[MergeEvent] = field(default_factory=list)
	duplicates: List[DuplicateDefinition] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def overrides(self) -> List[OverrideEvent]:
		return [e for e in self.events if isinstance(e, OverrideEvent)]

	@property
	def conflicts(self) -> List[ConflictEvent]:
		return [e for e in self.events if isinstance(e, ConflictEvent)]


def extract_source(
	path: str,
	text: str,
	registry: TokenRegistry,
	*,
	table_type: str = DEFAULT_TABLE_TYPE,
) -> FileExtraction:
	"""
	Extract the directive records of one file.

	A lexical error drops the whole file; a structural error drops one table;
	a semantic error drops one directive. All of them are returned as
	diagnostics, never raised.
	"""
	result = FileExtraction(path=path)
	try:
		tokens = scan_tokens(text, file=path)
	except LexicalError as err:
		logger.warning("%s: skipped, %s", path, err)
		result.diagnostics.append(err.to_diagnostic())
		return result
	entries, table_diags = parse_directive_tables(tokens, file=path, table_type=table_type)
	records, resolve_diags = resolve_entries(entries, registry)
	result.records = records
	result.diagnostics = table_diags + resolve_diags
	for diag in table_diags:
		logger.warning("%s: %s", diag.span.short(), diag.message)
	logger.debug("%s: %d directive(s), %d diagnostic(s)", path, len(records), len(result.diagnostics))
	return result


def _event_note(event: MergeEvent) -> Diagnostic:
	if isinstance(event, OverrideEvent):
		return Diagnostic(
			message=event.describe(),
			code="W-MERGE-OVERRIDE",
			phase="merge",
			severity="warning",
			span=event.replacement.span,
			notes=[f"previous definition at {event.discarded.span.short()}"],
		)
	return Diagnostic(
		message=event.describe(),
		code="W-MERGE-CONFLICT",
		phase="merge",
		severity="warning",
		span=event.incoming.span,
		notes=[f"kept definition at {event.existing.span.short()}"],
	)


def extract_sources(
	sources: Iterable[Source],
	registry: TokenRegistry,
	*,
	jobs: int = 1,
	table_type: str = DEFAULT_TABLE_TYPE,
) -> ExtractionResult:
	"""
	Extract every source and fold the records in the given order.

	With `jobs > 1` files are extracted on a thread pool; `Executor.map` keeps
	results in submission order, so the fold sees exactly the caller's order.
	"""
	ordered: Sequence[Source] = list(sources)

	def _one(src: Source) -> FileExtraction:
		return extract_source(src[0], src[1], registry, table_type=table_type)

	if jobs > 1 and len(ordered) > 1:
		with ThreadPoolExecutor(max_workers=jobs) as pool:
			extractions = list(pool.map(_one, ordered))
	else:
		extractions = [_one(src) for src in ordered]

	aggregator = CatalogAggregator()
	diagnostics: List[Diagnostic] = []
	for extraction in extractions:
		diagnostics.extend(extraction.diagnostics)
		for record in extraction.records:
			event = aggregator.merge(record)
			if event is not None:
				diagnostics.append(_event_note(event))
	merged = aggregator.result()
	return ExtractionResult(
		catalog=merged.catalog,
		events=merged.events,
		duplicates=merged.duplicates,
		diagnostics=diagnostics,
	)


def discover_sources(path: Path, suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> Iterator[Source]:
	"""
	Yield `(path, text)` for `path` itself or every matching file below it.

	Directory walks are sorted so the fold order (and thus the override
	policy) does not depend on file-system enumeration order.
	"""
	path = Path(path)
	if path.is_file():
		yield str(path), path.read_text(errors="replace")
		return
	if not path.is_dir():
		raise FileNotFoundError(f"source path not found: {path}")
	matches = sorted(p for p in path.rglob("*") if p.is_file() and p.suffix in suffixes)
	for match in matches:
		yield str(match), match.read_text(errors="replace")


def apply_config(result: ExtractionResult, config: GenerateConfig, registry: TokenRegistry) -> ExtractionResult:
	"""
	Apply `filter` then `override` to an aggregated result.

	Overrides only touch directives present in the catalog; an override mask
	that does not resolve is reported as a `config` diagnostic and the source
	definition is kept.
	"""
	diagnostics = list(result.diagnostics)
	records: List[DirectiveRecord] = []
	for record in result.catalog.values():
		if record.name in config.filter:
			logger.info("filter: dropping directive '%s'", record.name)
			continue
		mask_text = config.override.get(record.name)
		if mask_text is None:
			records.append(record)
			continue
		try:
			replacement = resolve_mask(record.name, split_mask(mask_text), registry, span=Span(file="<override>"))
		except (ConfigError, SemanticError) as err:
			diag = err.to_diagnostic()
			diag.phase = "config"
			diag.notes.append(f"override for '{record.name}' ignored; keeping {record.span.short()}")
			diagnostics.append(diag)
			records.append(record)
			continue
		logger.info("override: directive '%s' %s -> %s", record.name, record.describe(), replacement.describe())
		records.append(replacement)
	return ExtractionResult(
		catalog=DirectiveCatalog(records),
		events=list(result.events),
		duplicates=list(result.duplicates),
		diagnostics=diagnostics,
	)


def run(
	paths: Sequence[Path],
	registry: TokenRegistry,
	config: Optional[GenerateConfig] = None,
) -> ExtractionResult:
	"""Discover, extract, fold and apply `config` for the given source paths."""
	config = config or GenerateConfig()
	sources: List[Source] = []
	for path in paths:
		sources.extend(discover_sources(path, config.suffixes))
	logger.debug("extracting %d source file(s) with %d job(s)", len(sources), config.jobs)
	result = extract_sources(sources, registry, jobs=config.jobs, table_type=config.table_type)
	return apply_config(result, config, registry)


__all__ = [
	"FileExtraction",
	"ExtractionResult",
	"extract_source",
	"extract_sources",
	"discover_sources",
	"apply_config",
	"run",
]
