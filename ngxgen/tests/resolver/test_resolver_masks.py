# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from ngxgen.core.span import Span
from ngxgen.errors import ArityError, ScopeError, UnknownTokenError
from ngxgen.registry import Arity, TokenRegistry, default_registry
from ngxgen.resolver import resolve_entries, resolve_entry, resolve_mask
from ngxgen.table_parser import RawDirectiveEntry


def _entry(name: str, *mask: str, line: int = 10) -> RawDirectiveEntry:
	return RawDirectiveEntry(
		name=name,
		mask=tuple(mask),
		mask_spans=tuple(Span(file="m.c", line=line + 1, column=7 + 20 * i) for i in range(len(mask))),
		file="m.c",
		line=line,
		column=7,
		table="cmds",
	)


def test_scope_plus_single_arity() -> None:
	rec = resolve_entry(_entry("d", "NGX_MAIN_CONF", "NGX_CONF_TAKE2"), default_registry())
	assert rec.scopes == frozenset({"MAIN"})
	assert rec.arity == Arity.take(2)
	assert rec.modifiers == frozenset()
	assert rec.span == Span(file="m.c", line=10, column=7)


def test_injected_vocabulary() -> None:
	registry = TokenRegistry.from_spec({"MAIN_CONF": {"scope": "MAIN"}, "TAKE2": {"arity": "TAKE2"}})
	rec = resolve_mask("d", ("MAIN_CONF", "TAKE2"), registry)
	assert rec.scopes == frozenset({"MAIN"})
	assert str(rec.arity) == "TAKE2"


def test_union_of_scopes_and_modifiers() -> None:
	rec = resolve_entry(
		_entry("location", "NGX_HTTP_SRV_CONF", "NGX_HTTP_LOC_CONF", "NGX_CONF_BLOCK", "NGX_CONF_TAKE12"),
		default_registry(),
	)
	assert rec.scopes == frozenset({"HTTP_SRV", "HTTP_LOC"})
	assert rec.modifiers == frozenset({"BLOCK"})
	assert rec.arity == Arity.take(1, 2)
	assert rec.describe() == "HTTP_LOC|HTTP_SRV|BLOCK|TAKE12"


def test_unknown_token_names_token_position_and_directive() -> None:
	with pytest.raises(UnknownTokenError) as excinfo:
		resolve_entry(_entry("my_directive_1", "NGX_HTTP_MAIN_CONF", "FAKE_BITMASK"), default_registry())
	err = excinfo.value
	assert err.token == "FAKE_BITMASK"
	assert err.directive == "my_directive_1"
	assert err.code == "E-MASK-UNKNOWN-TOKEN"
	assert "FAKE_BITMASK" in str(err)
	assert (err.span.line, err.span.column) == (11, 27)


def test_second_arity_is_rejected() -> None:
	with pytest.raises(ArityError) as excinfo:
		resolve_entry(_entry("d", "NGX_MAIN_CONF", "NGX_CONF_TAKE1", "NGX_CONF_TAKE2"), default_registry())
	assert excinfo.value.token == "NGX_CONF_TAKE2"
	assert excinfo.value.code == "E-MASK-ARITY"


def test_missing_arity_is_rejected() -> None:
	with pytest.raises(ArityError) as excinfo:
		resolve_entry(_entry("d", "NGX_MAIN_CONF", "NGX_DIRECT_CONF"), default_registry())
	assert excinfo.value.token is None
	assert excinfo.value.span.line == 10


def test_missing_scope_is_rejected() -> None:
	with pytest.raises(ScopeError):
		resolve_entry(_entry("d", "NGX_CONF_FLAG"), default_registry())


def test_failing_entry_does_not_affect_siblings() -> None:
	entries = [
		_entry("my_directive_1", "NGX_HTTP_MAIN_CONF", "FAKE_BITMASK"),
		_entry("my_directive_2", "NGX_HTTP_MAIN_CONF", "NGX_CONF_FLAG"),
		_entry("my_directive_3", "NGX_HTTP_MAIN_CONF", "NGX_HTTP_SRV_CONF", "NGX_CONF_NOARGS"),
	]
	records, diagnostics = resolve_entries(entries, default_registry())
	assert [r.name for r in records] == ["my_directive_2", "my_directive_3"]
	assert len(diagnostics) == 1
	diag = diagnostics[0]
	assert diag.code == "E-MASK-UNKNOWN-TOKEN"
	assert diag.phase == "resolve"
	assert "FAKE_BITMASK" in diag.message
	assert any("excluded" in note for note in diag.notes)
