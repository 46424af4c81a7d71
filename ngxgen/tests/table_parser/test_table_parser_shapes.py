# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest

from ngxgen.errors import StructuralError
from ngxgen.scanner import scan_tokens
from ngxgen.table_parser import find_directive_tables, parse_directive_tables, parse_table

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


def _parse(src: str, file: str = "t.c"):
	return parse_directive_tables(scan_tokens(src, file=file), file=file)


def _codes(diagnostics) -> list[str]:
	return [d.code for d in diagnostics]


def test_parses_module_fixture() -> None:
	path = FIXTURES / "normal" / "ngx_http_my_module.c"
	entries, diagnostics = _parse(path.read_text(), str(path))
	assert diagnostics == []
	assert [e.name for e in entries] == ["my_directive_1", "my_directive_2", "my_directive_3", "my_directive_4"]
	assert entries[0].mask == ("NGX_HTTP_MAIN_CONF", "NGX_CONF_TAKE2")
	assert entries[3].mask == ("NGX_HTTP_MAIN_CONF", "NGX_HTTP_SRV_CONF", "NGX_CONF_BLOCK", "NGX_CONF_TAKE12")
	assert all(e.table == "ngx_http_my_commands" for e in entries)
	assert entries[0].file == str(path)


def test_name_is_verbatim_and_located() -> None:
	entries, diagnostics = _parse(
		'static ngx_command_t t[] = {\n'
		'    { ngx_string("a b;c"), NGX_MAIN_CONF|NGX_CONF_TAKE1, 0, 0, 0, NULL },\n'
		'    ngx_null_command\n'
		'};\n'
	)
	assert diagnostics == []
	(entry,) = entries
	assert entry.name == "a b;c"
	assert (entry.line, entry.column) == (2, 18)
	assert [s.line for s in entry.mask_spans] == [2, 2]


def test_bare_string_name_and_nested_commas_in_opaque_fields() -> None:
	entries, diagnostics = _parse(
		"""
ngx_command_t cmds[3] = {
	{ "plain",
	  NGX_HTTP_LOC_CONF|NGX_CONF_1MORE,
	  ngx_conf_set_keyval_slot,
	  NGX_HTTP_LOC_CONF_OFFSET,
	  offsetof(ngx_http_x_loc_conf_t, headers),
	  &(ngx_conf_post_t){ handler, 1 } },
	ngx_null_command,
};
"""
	)
	assert diagnostics == []
	assert [e.name for e in entries] == ["plain"]


def test_expanded_null_sentinel() -> None:
	entries, diagnostics = _parse(
		"""
static ngx_command_t cmds[] = {
	{ ngx_string("x"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL },
	{ ngx_null_string, 0, NULL, 0, 0, NULL }
};
"""
	)
	assert diagnostics == []
	assert [e.name for e in entries] == ["x"]


def test_declarations_without_initializer_are_not_tables() -> None:
	tokens = scan_tokens(
		"""
extern ngx_command_t ngx_http_core_commands[];
static char *handler(ngx_conf_t *cf, ngx_command_t *cmd, void *conf);
"""
	)
	assert list(find_directive_tables(tokens)) == []


def test_custom_table_type() -> None:
	src = """
static my_cmd_t cmds[] = {
	{ ngx_string("x"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL },
	ngx_null_command
};
"""
	tokens = scan_tokens(src)
	assert parse_directive_tables(tokens)[0] == []
	entries, _ = parse_directive_tables(tokens, table_type="my_cmd_t")
	assert [e.name for e in entries] == ["x"]


@pytest.mark.parametrize(
	("record", "code"),
	[
		('{ ngx_string("x"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, NULL }', "E-TABLE-FIELD-COUNT"),
		('{ ngx_string("x"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, 0, NULL }', "E-TABLE-FIELD-COUNT"),
		('{ ngx_string("x"), , 0, 0, 0, NULL }', "E-TABLE-EMPTY-FIELD"),
		("{ some_name, NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL }", "E-TABLE-NAME"),
		('{ ngx_string(""), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL }', "E-TABLE-NAME"),
		('{ ngx_string("x"), 0, 0, 0, 0, NULL }', "E-TABLE-MASK"),
		('{ ngx_string("x"), NGX_MAIN_CONF|, 0, 0, 0, NULL }', "E-TABLE-MASK"),
		('{ ngx_string("x"), NGX_MAIN_CONF NGX_CONF_FLAG, 0, 0, 0, NULL }', "E-TABLE-MASK"),
		('ngx_string("x")', "E-TABLE-ELEMENT"),
	],
)
def test_malformed_record_aborts_only_its_table(record: str, code: str) -> None:
	src = f"""
static ngx_command_t bad[] = {{
	{{ ngx_string("before"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL }},
	{record},
	ngx_null_command
}};

static ngx_command_t good[] = {{
	{{ ngx_string("after"), NGX_MAIN_CONF|NGX_CONF_NOARGS, 0, 0, 0, NULL }},
	ngx_null_command
}};
"""
	entries, diagnostics = _parse(src, "bad.c")
	assert [e.name for e in entries] == ["after"]
	assert _codes(diagnostics) == [code]
	assert diagnostics[0].span.file == "bad.c"
	assert diagnostics[0].phase == "table"


def test_missing_sentinel_is_structural() -> None:
	path = FIXTURES / "no_sentinel" / "mixed_tables.c"
	entries, diagnostics = _parse(path.read_text(), str(path))
	assert [e.name for e in entries] == ["kept_directive"]
	assert _codes(diagnostics) == ["E-TABLE-NO-SENTINEL"]
	assert diagnostics[0].span.file == str(path)
	assert diagnostics[0].span.line == 1
	assert "broken_directives" in diagnostics[0].message


def test_element_after_sentinel() -> None:
	_entries, diagnostics = _parse(
		"""
static ngx_command_t t[] = {
	ngx_null_command,
	{ ngx_string("late"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL }
};
"""
	)
	assert _codes(diagnostics) == ["E-TABLE-AFTER-SENTINEL"]


def test_empty_table_has_no_sentinel() -> None:
	entries, diagnostics = _parse("static ngx_command_t t[] = { };")
	assert entries == []
	assert _codes(diagnostics) == ["E-TABLE-NO-SENTINEL"]


def test_unterminated_table() -> None:
	src = """
static ngx_command_t t[] = {
	{ ngx_string("x"), NGX_MAIN_CONF|NGX_CONF_FLAG, 0, 0, 0, NULL },
	ngx_null_command
"""
	tables = list(find_directive_tables(scan_tokens(src), file="cut.c"))
	assert len(tables) == 1
	assert not tables[0].terminated
	with pytest.raises(StructuralError) as excinfo:
		parse_table(tables[0])
	assert excinfo.value.code == "E-TABLE-UNTERMINATED"
	assert excinfo.value.span.file == "cut.c"
