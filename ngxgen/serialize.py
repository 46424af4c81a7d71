# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
JSON forms of the catalog and of the diagnostic report.

The catalog document is the hand-off format for downstream generators and
round-trips exactly: names, order, scopes, arity and modifiers.

	{"directives": [
	  {"name": "listen", "scopes": ["HTTP_SRV"], "arity": "1MORE",
	   "modifiers": [], "file": "ngx_http_core_module.c", "line": 42, "column": 7},
	  ...
	]}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ngxgen.catalog import ConflictEvent, DirectiveCatalog, OverrideEvent
from ngxgen.core.diagnostics import Diagnostic
from ngxgen.core.span import Span
from ngxgen.errors import ConfigError
from ngxgen.registry import Arity
from ngxgen.resolver import DirectiveRecord


def record_to_json(record: DirectiveRecord) -> Dict[str, Any]:
	return {
		"name": record.name,
		"scopes": sorted(record.scopes),
		"arity": str(record.arity),
		"modifiers": sorted(record.modifiers),
		"file": record.span.file,
		"line": record.span.line,
		"column": record.span.column,
	}


def record_from_json(doc: Any) -> DirectiveRecord:
	if not isinstance(doc, dict):
		raise ConfigError("catalog entry must be an object")
	try:
		name = doc["name"]
		scopes = doc["scopes"]
		arity_text = doc["arity"]
	except KeyError as err:
		raise ConfigError(f"catalog entry is missing {err}") from err
	modifiers = doc.get("modifiers", [])
	if not isinstance(name, str) or not name:
		raise ConfigError("catalog entry has an invalid name")
	if not isinstance(scopes, list) or not scopes or not all(isinstance(s, str) for s in scopes):
		raise ConfigError(f"catalog entry '{name}': 'scopes' must be a non-empty list of strings")
	if not isinstance(modifiers, list) or not all(isinstance(m, str) for m in modifiers):
		raise ConfigError(f"catalog entry '{name}': 'modifiers' must be a list of strings")
	try:
		arity = Arity.parse(arity_text)
	except (ValueError, AttributeError) as err:
		raise ConfigError(f"catalog entry '{name}': {err}") from err
	return DirectiveRecord(
		name=name,
		scopes=frozenset(scopes),
		arity=arity,
		modifiers=frozenset(modifiers),
		span=Span(file=doc.get("file"), line=doc.get("line"), column=doc.get("column")),
	)


def catalog_to_json(catalog: DirectiveCatalog) -> Dict[str, Any]:
	return {"directives": [record_to_json(r) for r in catalog.values()]}


def catalog_from_json(doc: Any) -> DirectiveCatalog:
	if not isinstance(doc, dict) or not isinstance(doc.get("directives"), list):
		raise ConfigError("catalog document must be an object with a 'directives' list")
	records = [record_from_json(entry) for entry in doc["directives"]]
	names = [r.name for r in records]
	if len(set(names)) != len(names):
		raise ConfigError("catalog document lists a directive more than once")
	return DirectiveCatalog(records)


def diagnostic_to_json(diag: Diagnostic, source: Path | None = None) -> Dict[str, Any]:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	file = diag.span.file
	if file is None and source is not None:
		file = str(source)
	return {
		"phase": diag.phase,
		"code": diag.code,
		"message": diag.message,
		"severity": diag.severity,
		"file": file,
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
	}


def override_to_json(event: OverrideEvent) -> Dict[str, Any]:
	return {
		"name": event.name,
		"discarded": record_to_json(event.discarded),
		"replacement": record_to_json(event.replacement),
	}


def conflict_to_json(event: ConflictEvent) -> Dict[str, Any]:
	return {
		"name": event.name,
		"existing": record_to_json(event.existing),
		"incoming": record_to_json(event.incoming),
	}


def report_to_json(
	exit_code: int,
	diagnostics: List[Diagnostic],
	overrides: List[OverrideEvent],
	conflicts: List[ConflictEvent],
) -> Dict[str, Any]:
	return {
		"exit_code": exit_code,
		"diagnostics": [diagnostic_to_json(d) for d in diagnostics],
		"overrides": [override_to_json(e) for e in overrides],
		"conflicts": [conflict_to_json(e) for e in conflicts],
	}


__all__ = [
	"record_to_json",
	"record_from_json",
	"catalog_to_json",
	"catalog_from_json",
	"diagnostic_to_json",
	"report_to_json",
]
