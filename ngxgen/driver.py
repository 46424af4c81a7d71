# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: source paths in, directive catalog JSON out.

	ngxgen path/to/nginx/src -o directives.json
	ngxgen module.c --filter my_directive --override 'listen:NGX_HTTP_SRV_CONF|NGX_CONF_1MORE'
	ngxgen src --json            # structured report on stdout

Exit codes: 0 success, 1 extraction errors / nothing found / strict-mode
overrides, 2 usage or configuration errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from ngxgen.config import GenerateConfig, load_config, parse_override_item
from ngxgen.core.diagnostics import Diagnostic, has_errors
from ngxgen.errors import ConfigError
from ngxgen.pipeline import ExtractionResult, run
from ngxgen.registry import TokenRegistry, default_registry, load_token_registry
from ngxgen.serialize import catalog_to_json, report_to_json

logger = logging.getLogger(__name__)


def _override_arg(text: str) -> tuple[str, str]:
	try:
		return parse_override_item(text)
	except ConfigError as err:
		raise argparse.ArgumentTypeError(str(err)) from err


def _build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="ngxgen",
		description="Extract nginx directive definitions (ngx_command_t tables) into a JSON catalog",
	)
	parser.add_argument("source", type=Path, nargs="+", help="Source file(s) or directories (.c/.cpp files are collected recursively)")
	parser.add_argument("-c", "--config", type=Path, help="JSON generator config (filter, override, tokens, tableType, suffixes, jobs, strict)")
	parser.add_argument("--tokens", type=Path, help="JSON token vocabulary replacing or extending the built-in nginx bitmask names")
	parser.add_argument(
		"--filter",
		dest="filters",
		action="append",
		default=[],
		metavar="DIRECTIVE",
		help="Exclude a directive from the output (repeatable)",
	)
	parser.add_argument(
		"--override",
		dest="overrides",
		action="append",
		default=[],
		type=_override_arg,
		metavar="DIRECTIVE:MASK",
		help="Replace a directive's bitmask, e.g. 'hash:NGX_HTTP_UPS_CONF|NGX_CONF_TAKE12' (repeatable)",
	)
	parser.add_argument("--table-type", help="C type of directive tables (default: ngx_command_t)")
	parser.add_argument("-j", "--jobs", type=int, help="Extract files on this many worker threads")
	parser.add_argument("-o", "--output", type=Path, help="Write the catalog JSON to this path")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Print a JSON report (exit_code/diagnostics/overrides/conflicts) instead of human-readable diagnostics",
	)
	parser.add_argument(
		"--strict",
		action="store_true",
		default=None,
		help="Treat directive overrides between source files as failures",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
	return parser


def _configure_logging(verbosity: int) -> None:
	level = logging.ERROR
	if verbosity == 1:
		level = logging.INFO
	elif verbosity >= 2:
		level = logging.DEBUG
	logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _resolve_config(args: argparse.Namespace) -> GenerateConfig:
	config = load_config(args.config) if args.config else GenerateConfig()
	if args.jobs is not None and args.jobs < 1:
		raise ConfigError("--jobs must be a positive integer")
	return config.merged(
		filter=frozenset(args.filters),
		override=dict(args.overrides),
		tokens=args.tokens,
		table_type=args.table_type,
		jobs=args.jobs,
		strict=args.strict,
	)


def _load_registry(config: GenerateConfig) -> TokenRegistry:
	if config.tokens is None:
		return default_registry()
	return load_token_registry(config.tokens)


def _print_human(diagnostics: List[Diagnostic]) -> None:
	for diag in diagnostics:
		print(f"{diag.span.short()}: {diag.severity}: {diag.message}", file=sys.stderr)
		for note in diag.notes:
			print(f"  note: {note}", file=sys.stderr)


def _exit_code(result: ExtractionResult, config: GenerateConfig) -> int:
	if has_errors(result.diagnostics):
		return 1
	if config.strict and result.overrides:
		return 1
	return 0


def main(argv: list[str] | None = None) -> int:
	"""
	Run the extractor.

	The catalog is always produced from whatever extracted cleanly; the exit
	code tells callers whether the run was complete.
	"""
	parser = _build_arg_parser()
	args = parser.parse_args(argv)
	_configure_logging(args.verbose)

	try:
		config = _resolve_config(args)
		registry = _load_registry(config)
	except ConfigError as err:
		if args.json:
			print(json.dumps(report_to_json(2, [err.to_diagnostic()], [], [])))
		else:
			print(f"ngxgen: error: {err}", file=sys.stderr)
		return 2

	try:
		result = run(list(args.source), registry, config)
	except OSError as err:
		if args.json:
			diag = Diagnostic(message=str(err), phase="driver", severity="error")
			print(json.dumps(report_to_json(2, [diag], [], [])))
		else:
			print(f"ngxgen: error: {err}", file=sys.stderr)
		return 2

	diagnostics = list(result.diagnostics)
	if len(result.catalog) == 0 and not has_errors(diagnostics):
		diagnostics.append(
			Diagnostic(
				message="can't find any directives in the given paths, please check them",
				code="E-NO-DIRECTIVES",
				phase="driver",
				severity="error",
			)
		)
	result.diagnostics = diagnostics
	exit_code = _exit_code(result, config)
	if len(result.catalog) == 0:
		exit_code = 1

	catalog_doc = catalog_to_json(result.catalog)
	if args.output is not None:
		args.output.parent.mkdir(parents=True, exist_ok=True)
		args.output.write_text(json.dumps(catalog_doc, indent=2) + "\n")
		logger.info("wrote %d directive(s) to %s", len(result.catalog), args.output)

	if args.json:
		print(json.dumps(report_to_json(exit_code, diagnostics, result.overrides, result.conflicts)))
	else:
		_print_human(diagnostics)
		if args.output is None:
			print(json.dumps(catalog_doc, indent=2))
	return exit_code


__all__ = ["main"]
