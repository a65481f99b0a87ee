#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
inject_ids.py — Rewrite FormatJS message ids in SWC AST JSON files.

Reads the JSON form of an SWC ECMAScript/TSX AST (what `@swc/core` `parseSync`
returns), injects content-derived ids into every recognized message
declaration, and writes the tree back. Producing the AST from source, and
printing source from the rewritten AST, are left to the JS toolchain.

Key points
- `<FormattedMessage>` / `<FormattedHTMLMessage>` (also `<Intl.FormattedMessage>`)
  and `defineMessages({...})` / `formatMessage({...})` are rewritten.
- `id` is recomputed from defaultMessage + description; an existing `id`
  keeps its position, a missing one is appended last.
- Supports atomic writes, unified-diff dry-run, JSON report, ignore globs, and threads.

Usage Examples
--------------

1. Preview changes for a directory of `*.ast.json` files:
   python3 inject_ids.py --target build/ast --dry-run --diff

2. Apply (writes files, creates .bak backups):
   python3 inject_ids.py --target build/ast

3. Restrict message functions to defineMessages(), no backups, write a report:
   python3 inject_ids.py --target build/ast --define-only --no-backup --report ids.json

4. Filter a single AST through stdin/stdout:
   swc-parse src/App.tsx | python3 inject_ids.py --target - > App.ast.json

5. Write a starter config file, logging the run to a file:
   python3 inject_ids.py --init-config intl_ids.json --log-file injector.log
"""

from __future__ import annotations
import argparse
import concurrent.futures as cf
import dataclasses
import difflib
import fnmatch
import hashlib
import importlib
import json
import logging
import os
import pathlib
import sys
import tempfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

from intl_id_injector import hooks
from intl_id_injector.transformer import FormatJsTransformer
from intl_id_injector.utils.logging import apply_level, get_injector_logger
from intl_id_injector.utils.site_config import ConfigError, RewriterConfig, ensure_config_file, load_config

NEWLINE = "\n"

logger = logging.getLogger(__name__)


def load_transformer_class(dotted: str = hooks.transformer) -> type:
	"""Resolve the pass class named in hooks.py ("package.module.Class")."""
	module_name, _, attr = dotted.rpartition(".")
	cls = getattr(importlib.import_module(module_name), attr)
	if not issubclass(cls, FormatJsTransformer):
		raise TypeError(f"{dotted} is not a FormatJsTransformer")
	return cls


# ── Filesystem ops (atomic, reporting, ignore) ────────────────────────────────
@dataclasses.dataclass
class ProcessStats:
	scanned: int = 0
	changed: int = 0
	overridden: int = 0
	appended: int = 0
	skipped: int = 0

	def add(self, counts: Dict[str, int]) -> None:
		self.overridden += counts.get("overridden", 0)
		self.appended += counts.get("appended", 0)
		self.skipped += counts.get("skipped", 0)


@dataclasses.dataclass
class FileResult:
	changed: int = 0
	diff: Optional[str] = None
	counts: Dict[str, int] = dataclasses.field(default_factory=dict)


def is_ignored(base: pathlib.Path, path: pathlib.Path, ignore_globs: List[str]) -> bool:
	try:
		rel = str(path.relative_to(base)).replace("\\", "/")
	except ValueError:
		return True
	# leading slash so "**/x/**" also matches x at the top of the target
	return any(fnmatch.fnmatch(rel, pat) or fnmatch.fnmatch("/" + rel, pat) for pat in ignore_globs)


def atomic_write(path: pathlib.Path, data: str) -> None:
	"""Atomically write ``data`` to ``path``.

	This function writes to a temporary file in the same directory, fsyncs,
	then replaces the target. If the target exists, its permissions are
	preserved when possible.
	"""
	tmp_dir = path.parent
	tmp_dir.mkdir(parents=True, exist_ok=True)
	orig_mode = None
	try:
		orig_mode = path.stat().st_mode & 0o777
	except OSError:
		orig_mode = None

	tmp_name = None
	try:
		with tempfile.NamedTemporaryFile("w", delete=False, dir=tmp_dir, encoding="utf-8", newline=NEWLINE) as tf:
			tmp_name = tf.name
			tf.write(data)
			tf.flush()
			os.fsync(tf.fileno())
		os.replace(tmp_name, str(path))
		tmp_name = None
		if orig_mode is not None:
			try:
				os.chmod(str(path), orig_mode)
			except OSError:
				logger.debug("Failed to chmod %s", path)
	finally:
		if tmp_name is not None and os.path.exists(tmp_name):
			os.unlink(tmp_name)


def dump_tree(tree: Any) -> str:
	return json.dumps(tree, indent=2, ensure_ascii=False) + NEWLINE


def unified_diff(a: str, b: str, path: pathlib.Path) -> str:
	return "".join(
		difflib.unified_diff(
			a.splitlines(keepends=True),
			b.splitlines(keepends=True),
			fromfile=f"a/{path}",
			tofile=f"b/{path}",
		)
	)


def write_backup(p: pathlib.Path, text: str) -> Optional[pathlib.Path]:
	backup_name = f"{p.name}.{hashlib.sha1(text.encode('utf-8')).hexdigest()[:8]}.bak"
	backup_path = p.with_name(backup_name)
	try:
		atomic_write(backup_path, text)
	except OSError as e:
		logger.warning("Could not write backup %s: %s", backup_path, e)
		return None
	return backup_path


# ── Main processing ──────────────────────────────────────────────────────────

def transform_text(text: str, transformer: FormatJsTransformer) -> Tuple[Any, Any]:
	"""Parse AST JSON text and return (original tree, rewritten tree)."""
	tree = json.loads(text)
	if not isinstance(tree, dict):
		raise ValueError("AST root must be a JSON object")
	if tree.get("type") not in ("Module", "Script"):
		logger.debug("AST root is a %s, not a Module/Script", tree.get("type"))
	return tree, transformer.visit_program(tree)


def process_file(
	p: pathlib.Path,
	config: RewriterConfig,
	dry: bool = False,
	no_backup: bool = False,
	emit_diff: bool = False,
	max_file_size: Optional[int] = None,
	transformer_cls: type = FormatJsTransformer,
) -> FileResult:
	# Safety checks: skip symlinks and very large files (configurable)
	try:
		if p.is_symlink():
			logger.warning("Skipping symlink: %s", p)
			return FileResult()
	except OSError:
		logger.warning("Skipping path (is_symlink check failed): %s", p)
		return FileResult()

	try:
		if max_file_size and p.stat().st_size > max_file_size:
			logger.warning("Skipping large file (> %d bytes): %s", max_file_size, p)
			return FileResult()
	except OSError:
		logger.warning("Skipping path (stat failed): %s", p)
		return FileResult()

	try:
		text = p.read_text(encoding="utf-8")
	except (UnicodeDecodeError, OSError) as e:
		logger.warning("Failed to read %s: %s", p, e)
		return FileResult()

	transformer = transformer_cls(config)
	try:
		tree, new_tree = transform_text(text, transformer)
	except ValueError as e:
		logger.warning("Skipping %s: not an AST JSON document (%s)", p, e)
		return FileResult()
	counts = transformer.stats.as_dict()

	if new_tree == tree:
		return FileResult(counts=counts)

	new_text = dump_tree(new_tree)
	if dry:
		diff = unified_diff(dump_tree(tree), new_text, p) if emit_diff else None
		return FileResult(changed=1, diff=diff, counts=counts)

	if not no_backup:
		write_backup(p, text)
	try:
		atomic_write(p, new_text)
	except OSError as e:
		logger.error("Failed to write %s: %s", p, e)
		return FileResult(counts=counts)
	return FileResult(changed=1, counts=counts)


def discover_files(base: pathlib.Path, include_exts: Tuple[str, ...]) -> Iterable[pathlib.Path]:
	if base.is_file():
		yield base
		return
	seen = set()
	for ext in include_exts:
		for p in sorted(base.rglob(f"*{ext}")):
			if p not in seen and p.is_file():
				seen.add(p)
				yield p


def write_report(path: pathlib.Path, per_file: Dict[str, Dict[str, int]], stats: ProcessStats) -> None:
	report = {"files": per_file, "totals": dataclasses.asdict(stats)}
	atomic_write(path, json.dumps(report, indent=2, sort_keys=True) + NEWLINE)


def _split_csv(value: Optional[str]) -> List[str]:
	return [a.strip() for a in (value or "").split(",") if a.strip()]


def build_config(args: argparse.Namespace) -> RewriterConfig:
	config = load_config(getattr(args, "config", None))
	changes: Dict[str, Any] = {}
	if getattr(args, "define_only", False):
		changes["function_names"] = frozenset(hooks.define_only_function_names)
	if getattr(args, "components", None):
		changes["component_names"] = frozenset(_split_csv(args.components))
	if getattr(args, "functions", None):
		changes["function_names"] = frozenset(_split_csv(args.functions))
	if getattr(args, "strict", False):
		changes["hash_missing_message"] = False
	if getattr(args, "log_level", None):
		changes["log_level"] = args.log_level.upper()
	return config.with_overrides(**changes) if changes else config


def run_stdin(config: RewriterConfig, transformer_cls: type) -> int:
	transformer = transformer_cls(config)
	try:
		_, new_tree = transform_text(sys.stdin.read(), transformer)
	except ValueError as e:
		logger.error("stdin is not an AST JSON document: %s", e)
		return 2
	sys.stdout.write(dump_tree(new_tree))
	logger.info("Rewrote %d message(s), skipped %d", transformer.stats.rewritten, transformer.stats.skipped)
	return 0


def run_init_config(path: str) -> int:
	try:
		changed = ensure_config_file(path)
	except ConfigError as e:
		print(f"Invalid config: {e}", file=sys.stderr)
		return 2
	print(f"{'Wrote defaults to' if changed else 'Already up to date:'} {path}")
	return 0


def run(args: argparse.Namespace) -> int:
	if getattr(args, "log_file", None):
		get_injector_logger(log_file=args.log_file)
	if getattr(args, "init_config", None):
		return run_init_config(args.init_config)
	if not args.target:
		print("--target is required (or use --init-config)", file=sys.stderr)
		return 2

	try:
		config = build_config(args)
	except ConfigError as e:
		print(f"Invalid config: {e}", file=sys.stderr)
		return 2
	apply_level(config.log_level)
	transformer_cls = load_transformer_class()

	if args.target == "-":
		return run_stdin(config, transformer_cls)

	base = pathlib.Path(args.target).resolve()
	if not base.exists():
		print(f"Target not found: {base}", file=sys.stderr)
		return 2

	include_exts: Tuple[str, ...] = tuple(_split_csv(args.ext)) or tuple(hooks.include_exts)
	ignore_globs = list({*(args.ignore or []), *hooks.default_ignores})
	root = base if base.is_dir() else base.parent

	files = [p for p in discover_files(base, include_exts) if not is_ignored(root, p, ignore_globs)]

	stats = ProcessStats()
	per_file: Dict[str, Dict[str, int]] = {}
	diffs: List[str] = []

	def _work(p: pathlib.Path) -> FileResult:
		try:
			return process_file(
				p,
				config,
				dry=args.dry_run,
				no_backup=args.no_backup,
				emit_diff=args.diff,
				max_file_size=args.max_file_size,
				transformer_cls=transformer_cls,
			)
		except Exception as e:
			# Log and continue with the remaining files
			logger.error("Error processing %s: %s", p, e)
			return FileResult()

	# Threaded I/O; every file gets its own transformer
	with cf.ThreadPoolExecutor(max_workers=max(1, args.threads)) as ex:
		for p, result in zip(files, ex.map(_work, files)):
			stats.scanned += 1
			stats.changed += result.changed
			stats.add(result.counts)
			per_file[str(p.relative_to(root))] = {"changed": result.changed, **result.counts}
			if result.diff:
				diffs.append(result.diff)

	if args.diff and diffs:
		sys.stdout.write("\n".join(diffs))

	if args.report:
		write_report(pathlib.Path(args.report), per_file, stats)

	print(
		f"\nDone. Files scanned: {stats.scanned}, changed: {stats.changed}; "
		f"ids overridden: {stats.overridden}, appended: {stats.appended}, messages skipped: {stats.skipped}"
	)
	return 0


def build_arg_parser() -> argparse.ArgumentParser:
	ap = argparse.ArgumentParser(description="Inject content-derived ids into FormatJS messages in SWC AST JSON files")
	ap.add_argument("--target", help="AST JSON file, directory to scan, or - for stdin/stdout")
	ap.add_argument("--ext", default=",".join(hooks.include_exts), help="File suffixes to scan (comma-separated)")
	ap.add_argument("--dry-run", action="store_true", help="Report only; no writes")
	ap.add_argument("--no-backup", action="store_true", help="Do not write .bak backups")
	ap.add_argument("--ignore", action="append", default=[], help="Glob patterns to exclude (repeatable)")
	ap.add_argument("--threads", type=int, default=os.cpu_count() or 4, help="Parallel file workers")
	ap.add_argument("--diff", action="store_true", help="Print unified diff for changes (with --dry-run)")
	ap.add_argument("--max-file-size", type=int, default=16*1024*1024, help="Skip files larger than this many bytes (0 to disable)")
	ap.add_argument("--report", metavar="PATH", help="Write a JSON report of per-file rewrite counts")

	# Recognized declarations
	ap.add_argument("--config", metavar="PATH", help=f"JSON config file (default: ./{hooks.config_file} if present)")
	ap.add_argument("--define-only", action="store_true", help="Recognize defineMessages() as the only message function (components still apply)")
	ap.add_argument("--components", help="Override recognized component names (comma-separated)")
	ap.add_argument("--functions", help="Override recognized function names (comma-separated)")
	ap.add_argument("--strict", action="store_true", help="Leave messages without id and defaultMessage unchanged")
	ap.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
	ap.add_argument("--log-file", metavar="PATH", help="Also log to a rotating file")
	ap.add_argument("--init-config", metavar="PATH", help="Write missing default keys into a JSON config file and exit")

	return ap


def main(argv: Optional[List[str]] = None) -> None:
	args = build_arg_parser().parse_args(argv)
	sys.exit(run(args))


if __name__ == "__main__":
	main()
