# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Closed vocabulary of bitmask identifiers.

Every identifier that may appear in the mask field of a directive record is
classified as exactly one of:

- a scope bit   (`NGX_HTTP_SRV_CONF` -> scope `HTTP_SRV`),
- an arity      (`NGX_CONF_TAKE12`   -> arity `TAKE12`),
- a modifier    (`NGX_CONF_BLOCK`    -> modifier `BLOCK`).

Anything else is `UNKNOWN`. The registry is plain configuration data: it is
built once from a plain mapping and never mutated, so callers pass it
explicitly to the resolver and tests can inject their own vocabulary.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from ngxgen.errors import ConfigError

# nginx caps directive arguments at NGX_CONF_MAX_ARGS (8) including the name,
# so the largest fixed arity is TAKE7.
MAX_TAKE = 7

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TokenKind(Enum):
	SCOPE = auto()
	ARITY = auto()
	MODIFIER = auto()
	UNKNOWN = auto()


class ArityKind(Enum):
	NOARGS = auto()
	FLAG = auto()
	TAKE = auto()
	ONE_OR_MORE = auto()
	TWO_OR_MORE = auto()
	ANY = auto()


_ARITY_KEYWORDS = {
	"NOARGS": ArityKind.NOARGS,
	"FLAG": ArityKind.FLAG,
	"1MORE": ArityKind.ONE_OR_MORE,
	"2MORE": ArityKind.TWO_OR_MORE,
	"ANY": ArityKind.ANY,
}
_ARITY_TEXT = {kind: text for text, kind in _ARITY_KEYWORDS.items()}


@dataclass(frozen=True)
class Arity:
	"""
	Argument-count classifier of a directive.

	`counts` is only used by `TAKE` and holds the accepted argument counts in
	ascending order (`TAKE12` -> (1, 2)).
	"""

	kind: ArityKind
	counts: Tuple[int, ...] = ()

	@classmethod
	def take(cls, *counts: int) -> "Arity":
		if not counts:
			raise ValueError("TAKE arity needs at least one argument count")
		ordered = tuple(sorted(set(counts)))
		if len(ordered) != len(counts):
			raise ValueError(f"duplicate argument count in TAKE arity: {counts}")
		for n in ordered:
			if not 1 <= n <= MAX_TAKE:
				raise ValueError(f"TAKE argument count {n} outside 1..{MAX_TAKE}")
		return cls(ArityKind.TAKE, ordered)

	@classmethod
	def parse(cls, text: str) -> "Arity":
		"""Parse the canonical text form (`NOARGS`, `FLAG`, `TAKE12`, `1MORE`, ...)."""
		word = text.strip().upper()
		kind = _ARITY_KEYWORDS.get(word)
		if kind is not None:
			return cls(kind)
		if word.startswith("TAKE") and len(word) > 4 and word[4:].isdigit():
			digits = [int(ch) for ch in word[4:]]
			if digits != sorted(digits):
				raise ValueError(f"invalid arity '{text}': argument counts must be ascending")
			return cls.take(*digits)
		raise ValueError(f"invalid arity '{text}'")

	def __str__(self) -> str:
		if self.kind is ArityKind.TAKE:
			return "TAKE" + "".join(str(n) for n in self.counts)
		return _ARITY_TEXT[self.kind]

	@property
	def is_variadic(self) -> bool:
		return self.kind in (ArityKind.ONE_OR_MORE, ArityKind.TWO_OR_MORE, ArityKind.ANY)


@dataclass(frozen=True)
class TokenClass:
	"""Classification of one bitmask identifier."""

	identifier: str
	kind: TokenKind
	scope: Optional[str] = None
	arity: Optional[Arity] = None
	modifier: Optional[str] = None

	@classmethod
	def unknown(cls, identifier: str) -> "TokenClass":
		return cls(identifier=identifier, kind=TokenKind.UNKNOWN)


DEFAULT_TOKEN_SPEC: Dict[str, Dict[str, str]] = {
	# core
	"NGX_MAIN_CONF": {"scope": "MAIN"},
	"NGX_EVENT_CONF": {"scope": "EVENT"},
	"NGX_ANY_CONF": {"scope": "ANY"},
	"NGX_DIRECT_CONF": {"modifier": "DIRECT"},
	"NGX_CONF_BLOCK": {"modifier": "BLOCK"},
	# http
	"NGX_HTTP_MAIN_CONF": {"scope": "HTTP_MAIN"},
	"NGX_HTTP_SRV_CONF": {"scope": "HTTP_SRV"},
	"NGX_HTTP_LOC_CONF": {"scope": "HTTP_LOC"},
	"NGX_HTTP_UPS_CONF": {"scope": "HTTP_UPS"},
	"NGX_HTTP_SIF_CONF": {"scope": "HTTP_SIF"},
	"NGX_HTTP_LIF_CONF": {"scope": "HTTP_LIF"},
	"NGX_HTTP_LMT_CONF": {"scope": "HTTP_LMT"},
	# stream
	"NGX_STREAM_MAIN_CONF": {"scope": "STREAM_MAIN"},
	"NGX_STREAM_SRV_CONF": {"scope": "STREAM_SRV"},
	"NGX_STREAM_UPS_CONF": {"scope": "STREAM_UPS"},
	# mail
	"NGX_MAIL_MAIN_CONF": {"scope": "MAIL_MAIN"},
	"NGX_MAIL_SRV_CONF": {"scope": "MAIL_SRV"},
	# arity
	"NGX_CONF_NOARGS": {"arity": "NOARGS"},
	"NGX_CONF_FLAG": {"arity": "FLAG"},
	"NGX_CONF_TAKE1": {"arity": "TAKE1"},
	"NGX_CONF_TAKE2": {"arity": "TAKE2"},
	"NGX_CONF_TAKE3": {"arity": "TAKE3"},
	"NGX_CONF_TAKE4": {"arity": "TAKE4"},
	"NGX_CONF_TAKE5": {"arity": "TAKE5"},
	"NGX_CONF_TAKE6": {"arity": "TAKE6"},
	"NGX_CONF_TAKE7": {"arity": "TAKE7"},
	"NGX_CONF_TAKE12": {"arity": "TAKE12"},
	"NGX_CONF_TAKE13": {"arity": "TAKE13"},
	"NGX_CONF_TAKE23": {"arity": "TAKE23"},
	"NGX_CONF_TAKE123": {"arity": "TAKE123"},
	"NGX_CONF_TAKE1234": {"arity": "TAKE1234"},
	"NGX_CONF_1MORE": {"arity": "1MORE"},
	"NGX_CONF_2MORE": {"arity": "2MORE"},
	"NGX_CONF_ANY": {"arity": "ANY"},
}


def _classify(identifier: str, value: object) -> TokenClass:
	if not isinstance(identifier, str) or not _NAME_RE.match(identifier):
		raise ConfigError(f"invalid bitmask identifier {identifier!r}")
	if not isinstance(value, Mapping) or len(value) != 1:
		raise ConfigError(f"token '{identifier}': expected exactly one of 'scope', 'arity' or 'modifier'")
	(key, raw), = value.items()
	if not isinstance(raw, str) or not raw:
		raise ConfigError(f"token '{identifier}': '{key}' must be a non-empty string")
	if key == "scope":
		if not _NAME_RE.match(raw):
			raise ConfigError(f"token '{identifier}': invalid scope name {raw!r}")
		return TokenClass(identifier, TokenKind.SCOPE, scope=raw)
	if key == "modifier":
		if not _NAME_RE.match(raw):
			raise ConfigError(f"token '{identifier}': invalid modifier name {raw!r}")
		return TokenClass(identifier, TokenKind.MODIFIER, modifier=raw)
	if key == "arity":
		try:
			arity = Arity.parse(raw)
		except ValueError as err:
			raise ConfigError(f"token '{identifier}': {err}") from err
		return TokenClass(identifier, TokenKind.ARITY, arity=arity)
	raise ConfigError(f"token '{identifier}': unknown classification '{key}'")


class TokenRegistry:
	"""
	Read-only identifier -> classification table.

	Construct through `from_spec` (validates) or `default_registry()`.
	"""

	def __init__(self, entries: Mapping[str, TokenClass]) -> None:
		self._entries: Mapping[str, TokenClass] = MappingProxyType(dict(entries))

	@classmethod
	def from_spec(cls, spec: Mapping[str, object]) -> "TokenRegistry":
		return cls({ident: _classify(ident, value) for ident, value in spec.items()})

	def extended(self, spec: Mapping[str, object]) -> "TokenRegistry":
		"""Return a new registry with `spec` layered over this one."""
		entries = dict(self._entries)
		for ident, value in spec.items():
			entries[ident] = _classify(ident, value)
		return TokenRegistry(entries)

	def lookup(self, identifier: str) -> TokenClass:
		found = self._entries.get(identifier)
		if found is None:
			return TokenClass.unknown(identifier)
		return found

	def __contains__(self, identifier: object) -> bool:
		return identifier in self._entries

	def __len__(self) -> int:
		return len(self._entries)

	def __iter__(self) -> Iterator[str]:
		return iter(self._entries)

	def scopes(self) -> frozenset[str]:
		return frozenset(t.scope for t in self._entries.values() if t.scope is not None)

	def modifiers(self) -> frozenset[str]:
		return frozenset(t.modifier for t in self._entries.values() if t.modifier is not None)


_DEFAULT_REGISTRY: Optional[TokenRegistry] = None


def default_registry() -> TokenRegistry:
	"""The nginx vocabulary, built once per process."""
	global _DEFAULT_REGISTRY
	if _DEFAULT_REGISTRY is None:
		_DEFAULT_REGISTRY = TokenRegistry.from_spec(DEFAULT_TOKEN_SPEC)
	return _DEFAULT_REGISTRY


def load_token_registry(path: Path) -> TokenRegistry:
	"""
	Load a token vocabulary from JSON.

	Two shapes are accepted:
	- a flat object `{"IDENT": {"scope": "NAME"}, ...}` replacing the default
	  vocabulary, or
	- `{"extends_default": true, "tokens": {...}}` layering entries over the
	  default nginx vocabulary.
	"""
	try:
		doc = json.loads(Path(path).read_text())
	except OSError as err:
		raise ConfigError(f"cannot read token registry {path}: {err}") from err
	except json.JSONDecodeError as err:
		raise ConfigError(f"token registry {path} is not valid JSON: {err}") from err
	if not isinstance(doc, dict):
		raise ConfigError(f"token registry {path}: expected a JSON object")
	if "tokens" in doc:
		tokens = doc["tokens"]
		if not isinstance(tokens, dict):
			raise ConfigError(f"token registry {path}: 'tokens' must be an object")
		if doc.get("extends_default", False):
			return default_registry().extended(tokens)
		return TokenRegistry.from_spec(tokens)
	return TokenRegistry.from_spec(doc)


__all__ = [
	"MAX_TAKE",
	"TokenKind",
	"ArityKind",
	"Arity",
	"TokenClass",
	"TokenRegistry",
	"DEFAULT_TOKEN_SPEC",
	"default_registry",
	"load_token_registry",
]
