# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
ngxgen: extract nginx directive definitions from `ngx_command_t` tables.

Pipeline: scanner -> table_parser -> resolver -> catalog, driven by
`ngxgen.pipeline` and exposed on the command line by `ngxgen.driver`.
"""

from __future__ import annotations

from ngxgen.catalog import (
	CatalogAggregator,
	ConflictEvent,
	DirectiveCatalog,
	MergeResult,
	OverrideEvent,
	fold_catalog,
)
from ngxgen.config import GenerateConfig, load_config
from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span
from ngxgen.errors import (
	ArityError,
	ConfigError,
	ExtractError,
	LexicalError,
	ScopeError,
	SemanticError,
	StructuralError,
	UnknownTokenError,
)
from ngxgen.pipeline import ExtractionResult, apply_config, discover_sources, extract_source, extract_sources, run
from ngxgen.registry import Arity, ArityKind, TokenKind, TokenRegistry, default_registry, load_token_registry
from ngxgen.resolver import DirectiveRecord, resolve_entry
from ngxgen.scanner import scan_tokens, strip_comments
from ngxgen.serialize import catalog_from_json, catalog_to_json
from ngxgen.table_parser import RawDirectiveEntry, parse_directive_tables

__all__ = [
	"Arity",
	"ArityError",
	"ArityKind",
	"CatalogAggregator",
	"ConfigError",
	"ConflictEvent",
	"Diagnostic",
	"DirectiveCatalog",
	"DirectiveRecord",
	"ExtractError",
	"ExtractionResult",
	"GenerateConfig",
	"LexicalError",
	"MergeResult",
	"OverrideEvent",
	"RawDirectiveEntry",
	"ScopeError",
	"SemanticError",
	"Span",
	"StructuralError",
	"TokenKind",
	"TokenRegistry",
	"UnknownTokenError",
	"apply_config",
	"catalog_from_json",
	"catalog_to_json",
	"default_registry",
	"discover_sources",
	"extract_source",
	"extract_sources",
	"fold_catalog",
	"load_config",
	"load_token_registry",
	"parse_directive_tables",
	"resolve_entry",
	"run",
	"scan_tokens",
	"strip_comments",
]
