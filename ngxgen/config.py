# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Generator configuration.

A JSON config file carries the same knobs as the CLI flags:

	{
	  "filter": ["my_directive_2"],
	  "override": {"my_directive_1": "NGX_HTTP_MAIN_CONF|NGX_CONF_TAKE1"},
	  "tokens": "extra_tokens.json",
	  "tableType": "ngx_command_t",
	  "suffixes": [".c", ".cpp"],
	  "jobs": 4,
	  "strict": false
	}

`filter` excludes directives from the output. `override` replaces the mask of
a directive found in the sources; the replacement is resolved against the
same token registry as source masks.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ngxgen.errors import ConfigError
from ngxgen.table_parser import DEFAULT_TABLE_TYPE

DEFAULT_SUFFIXES: Tuple[str, ...] = (".c", ".cpp")


@dataclass(frozen=True)
class GenerateConfig:
	filter: frozenset[str] = frozenset()
	# Directive name -> mask text (`IDENT|IDENT|...`).
	override: Mapping[str, str] = field(default_factory=dict)
	tokens: Optional[Path] = None
	table_type: str = DEFAULT_TABLE_TYPE
	suffixes: Tuple[str, ...] = DEFAULT_SUFFIXES
	jobs: int = 1
	strict: bool = False

	def merged(
		self,
		*,
		filter: Optional[frozenset[str]] = None,
		override: Optional[Mapping[str, str]] = None,
		**changes: Any,
	) -> "GenerateConfig":
		"""
		Layer command-line values over this config.

		Filters are unioned, overrides are merged with the new values winning
		per directive, every other non-None value replaces the old one.
		"""
		merged_override: Dict[str, str] = dict(self.override)
		merged_override.update(override or {})
		updates = {k: v for k, v in changes.items() if v is not None}
		return replace(
			self,
			filter=self.filter | (filter or frozenset()),
			override=merged_override,
			**updates,
		)


def split_mask(text: str) -> Tuple[str, ...]:
	"""Split `A | B|C` into identifiers; an empty identifier is an error."""
	idents = tuple(part.strip() for part in text.split("|"))
	if any(not ident for ident in idents):
		raise ConfigError(f"empty bitmask identifier in '{text}', check for stray '|'")
	return idents


def parse_override_item(text: str) -> Tuple[str, str]:
	"""
	Parse a command-line override `directive:IDENT|IDENT|...`.

	Returns (directive, normalized mask text).
	"""
	directive, sep, definition = text.partition(":")
	if not sep:
		raise ConfigError(f"invalid override '{text}': colon not found")
	directive = directive.strip()
	if not directive:
		raise ConfigError(f"invalid override '{text}': directive name is empty")
	definition = definition.strip()
	if not definition:
		raise ConfigError(f"invalid override '{text}': directive definition is empty")
	return directive, "|".join(split_mask(definition))


def _override_from_json(raw: Any, path: Path) -> Dict[str, str]:
	if not isinstance(raw, dict):
		raise ConfigError(f"{path}: 'override' must be an object")
	out: Dict[str, str] = {}
	for name, mask in raw.items():
		if isinstance(mask, list):
			if not mask or not all(isinstance(m, str) for m in mask):
				raise ConfigError(f"{path}: override for '{name}' must be a non-empty list of identifiers")
			mask = "|".join(mask)
		if not isinstance(mask, str):
			raise ConfigError(f"{path}: override for '{name}' must be a string or a list of identifiers")
		out[name] = "|".join(split_mask(mask))
	return out


def load_config(path: Path) -> GenerateConfig:
	"""Read a JSON generator config; relative `tokens` paths resolve against the config's directory."""
	path = Path(path)
	try:
		doc = json.loads(path.read_text())
	except OSError as err:
		raise ConfigError(f"cannot read config {path}: {err}") from err
	except json.JSONDecodeError as err:
		raise ConfigError(f"config {path} is not valid JSON: {err}") from err
	if not isinstance(doc, dict):
		raise ConfigError(f"{path}: expected a JSON object")

	known = {"filter", "override", "tokens", "tableType", "suffixes", "jobs", "strict"}
	unknown = sorted(set(doc) - known)
	if unknown:
		raise ConfigError(f"{path}: unknown config keys {unknown}")

	raw_filter = doc.get("filter", [])
	if not isinstance(raw_filter, list) or not all(isinstance(n, str) for n in raw_filter):
		raise ConfigError(f"{path}: 'filter' must be a list of directive names")

	tokens: Optional[Path] = None
	if doc.get("tokens") is not None:
		if not isinstance(doc["tokens"], str):
			raise ConfigError(f"{path}: 'tokens' must be a path string")
		tokens = Path(doc["tokens"])
		if not tokens.is_absolute():
			tokens = path.parent / tokens

	table_type = doc.get("tableType", DEFAULT_TABLE_TYPE)
	if not isinstance(table_type, str) or not table_type:
		raise ConfigError(f"{path}: 'tableType' must be a non-empty string")

	suffixes = doc.get("suffixes", list(DEFAULT_SUFFIXES))
	if not isinstance(suffixes, list) or not suffixes or not all(isinstance(s, str) for s in suffixes):
		raise ConfigError(f"{path}: 'suffixes' must be a non-empty list of strings")

	jobs = doc.get("jobs", 1)
	if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
		raise ConfigError(f"{path}: 'jobs' must be a positive integer")

	strict = doc.get("strict", False)
	if not isinstance(strict, bool):
		raise ConfigError(f"{path}: 'strict' must be true or false")

	return GenerateConfig(
		filter=frozenset(raw_filter),
		override=_override_from_json(doc.get("override", {}), path),
		tokens=tokens,
		table_type=table_type,
		suffixes=tuple(suffixes),
		jobs=jobs,
		strict=strict,
	)


__all__ = ["GenerateConfig", "DEFAULT_SUFFIXES", "load_config", "parse_override_item", "split_mask"]
