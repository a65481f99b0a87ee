#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for inject_ids.py

Tests file processing, the CLI runner, and the filesystem helpers against
temporary directories and the fixture AST in test_data/.
"""
from __future__ import annotations

import contextlib
import io
import json
import logging
import os
import pathlib
import shutil
import stat
import tempfile
import unittest
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from intl_id_injector import testing as t
from intl_id_injector.scripts.inject_ids import (
    FileResult,
    atomic_write,
    build_arg_parser,
    is_ignored,
    load_transformer_class,
    process_file,
    run as run_cli,
)
from intl_id_injector.transformer import FormatJsTransformer
from intl_id_injector.utils.site_config import CONFIG_ENV_VAR, RewriterConfig

FIXTURE = pathlib.Path(__file__).parent / "test_data" / "fixture.ast.json"


def collect_ids(tree):
    """All injected/overridden id values in document order."""
    found = []

    def walk(node):
        if isinstance(node, list):
            for item in node:
                walk(item)
        elif isinstance(node, dict):
            key = node.get("name") if node.get("type") == "JSXAttribute" else node.get("key")
            if node.get("type") in ("JSXAttribute", "KeyValueProperty") and isinstance(key, dict) and key.get("value") == "id":
                found.append(node["value"]["value"])
            for value in node.values():
                walk(value)

    walk(tree)
    return found


class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = pathlib.Path(self.tmp.name)
        env = patch.dict(os.environ, {CONFIG_ENV_VAR: str(self.dir / "no-config.json")})
        env.start()
        self.addCleanup(env.stop)

    def copy_fixture(self, name="fixture.ast.json") -> pathlib.Path:
        target = self.dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(FIXTURE, target)
        return target

    def write_tree(self, tree, name) -> pathlib.Path:
        target = self.dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(tree), encoding="utf-8")
        return target

    def detach_log_file(self, path):
        logger = logging.getLogger("intl_id_injector")
        for h in list(logger.handlers):
            if isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(str(path)):
                logger.removeHandler(h)
                h.close()

    def run_quietly(self, argv):
        args = build_arg_parser().parse_args(argv)
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = run_cli(args)
        return code, out.getvalue()


class TestProcessFile(CliTestCase):

    def test_fixture_gets_ids(self):
        """<FormattedMessage> with "a"/"b" and defineMessages with "c"/"d"."""
        p = self.copy_fixture()
        result = process_file(p, RewriterConfig())
        self.assertEqual(result.changed, 1)
        self.assertEqual(result.counts, {"overridden": 0, "appended": 2, "skipped": 0})
        tree = json.loads(p.read_text(encoding="utf-8"))
        self.assertEqual(collect_ids(tree), ["m/KfEL", "1xi76U"])
        self.assertEqual(len(list(self.dir.glob("fixture.ast.json.*.bak"))), 1)

    def test_second_run_is_a_no_op(self):
        p = self.copy_fixture()
        process_file(p, RewriterConfig(), no_backup=True)
        first = p.read_text(encoding="utf-8")
        result = process_file(p, RewriterConfig(), no_backup=True)
        self.assertEqual(result.changed, 0)
        self.assertEqual(result.counts["overridden"], 2)
        self.assertEqual(p.read_text(encoding="utf-8"), first)

    def test_dry_run_with_diff(self):
        p = self.copy_fixture()
        before = p.read_text(encoding="utf-8")
        result = process_file(p, RewriterConfig(), dry=True, emit_diff=True)
        self.assertEqual(result.changed, 1)
        self.assertIn('+', result.diff)
        self.assertIn("m/KfEL", result.diff)
        self.assertEqual(p.read_text(encoding="utf-8"), before)
        self.assertEqual(list(self.dir.glob("*.bak")), [])

    def test_no_backup(self):
        p = self.copy_fixture()
        process_file(p, RewriterConfig(), no_backup=True)
        self.assertEqual(list(self.dir.glob("*.bak")), [])

    def test_untouched_file_is_not_rewritten(self):
        p = self.write_tree(t.module(t.call("console", t.string("x"))), "plain.ast.json")
        before = p.read_text(encoding="utf-8")
        result = process_file(p, RewriterConfig())
        self.assertEqual(result, FileResult(counts={"overridden": 0, "appended": 0, "skipped": 0}))
        self.assertEqual(p.read_text(encoding="utf-8"), before)

    def test_invalid_json_is_skipped(self):
        p = self.dir / "broken.ast.json"
        p.write_text("{nope", encoding="utf-8")
        with self.assertLogs("intl_id_injector", level="WARNING"):
            result = process_file(p, RewriterConfig())
        self.assertEqual(result.changed, 0)

    def test_large_file_is_skipped(self):
        p = self.copy_fixture()
        with self.assertLogs("intl_id_injector", level="WARNING"):
            result = process_file(p, RewriterConfig(), max_file_size=10)
        self.assertEqual(result.changed, 0)

    def test_markup_only(self):
        p = self.copy_fixture()
        process_file(p, RewriterConfig(function_names=frozenset()), no_backup=True)
        self.assertEqual(collect_ids(json.loads(p.read_text(encoding="utf-8"))), ["m/KfEL"])


class TestRun(CliTestCase):

    def test_directory_run_with_report(self):
        self.copy_fixture("src/a.ast.json")
        self.copy_fixture("src/nested/b.ast.json")
        self.copy_fixture("src/ignored/d.ast.json")
        (self.dir / "src" / "notes.json").write_text("{}", encoding="utf-8")
        report = self.dir / "report.json"

        code, out = self.run_quietly([
            "--target", str(self.dir / "src"),
            "--no-backup",
            "--ignore", "ignored/*",
            "--threads", "2",
            "--report", str(report),
        ])
        self.assertEqual(code, 0)
        self.assertIn("changed: 2", out)

        data = json.loads(report.read_text(encoding="utf-8"))
        self.assertEqual(sorted(data["files"]), ["a.ast.json", os.path.join("nested", "b.ast.json")])
        self.assertEqual(data["totals"]["appended"], 4)
        self.assertEqual(data["totals"]["scanned"], 2)
        untouched = json.loads((self.dir / "src" / "ignored" / "d.ast.json").read_text(encoding="utf-8"))
        self.assertEqual(collect_ids(untouched), [])

    def test_single_file_target_with_function_override(self):
        p = self.copy_fixture()
        code, _ = self.run_quietly(["--target", str(p), "--functions", "formatMessage", "--no-backup"])
        self.assertEqual(code, 0)
        self.assertEqual(collect_ids(json.loads(p.read_text(encoding="utf-8"))), ["m/KfEL"])

    def test_define_only_keeps_markup(self):
        p = self.copy_fixture()
        code, _ = self.run_quietly(["--target", str(p), "--define-only", "--no-backup"])
        self.assertEqual(code, 0)
        self.assertEqual(collect_ids(json.loads(p.read_text(encoding="utf-8"))), ["m/KfEL", "1xi76U"])

    def test_dry_run_diff_output(self):
        p = self.copy_fixture()
        before = p.read_text(encoding="utf-8")
        code, out = self.run_quietly(["--target", str(self.dir), "--dry-run", "--diff"])
        self.assertEqual(code, 0)
        self.assertIn("1xi76U", out)
        self.assertEqual(p.read_text(encoding="utf-8"), before)

    def test_missing_target(self):
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            code, _ = self.run_quietly(["--target", str(self.dir / "missing")])
        self.assertEqual(code, 2)
        self.assertIn("Target not found", err.getvalue())

    def test_bad_config(self):
        cfg = self.dir / "bad.json"
        cfg.write_text('{"component_names": 5}', encoding="utf-8")
        with contextlib.redirect_stderr(io.StringIO()):
            code, _ = self.run_quietly(["--target", str(self.dir), "--config", str(cfg)])
        self.assertEqual(code, 2)

    def test_config_file_is_used(self):
        cfg = self.dir / "intl.json"
        cfg.write_text(json.dumps({"component_names": ["Message"]}), encoding="utf-8")
        p = self.copy_fixture()
        code, _ = self.run_quietly(["--target", str(p), "--config", str(cfg), "--no-backup"])
        self.assertEqual(code, 0)
        self.assertEqual(collect_ids(json.loads(p.read_text(encoding="utf-8"))), ["1xi76U"])

    def test_missing_target_argument(self):
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            code, _ = self.run_quietly([])
        self.assertEqual(code, 2)
        self.assertIn("--target is required", err.getvalue())

    def test_init_config(self):
        cfg = self.dir / "intl_ids.json"
        code, out = self.run_quietly(["--init-config", str(cfg)])
        self.assertEqual(code, 0)
        self.assertIn("Wrote defaults", out)
        self.assertEqual(json.loads(cfg.read_text(encoding="utf-8"))["function_names"], ["defineMessages", "formatMessage"])
        code, out = self.run_quietly(["--init-config", str(cfg)])
        self.assertEqual(code, 0)
        self.assertIn("Already up to date", out)

    def test_init_config_rejects_malformed_file(self):
        cfg = self.dir / "intl_ids.json"
        cfg.write_text("[1]", encoding="utf-8")
        with contextlib.redirect_stderr(io.StringIO()):
            code, _ = self.run_quietly(["--init-config", str(cfg)])
        self.assertEqual(code, 2)

    def test_log_file(self):
        log = self.dir / "logs" / "run.log"
        log.parent.mkdir()
        (self.dir / "broken.ast.json").write_text("{nope", encoding="utf-8")
        self.addCleanup(self.detach_log_file, log)
        with contextlib.redirect_stderr(io.StringIO()):
            code, _ = self.run_quietly(["--target", str(self.dir), "--log-file", str(log)])
        self.assertEqual(code, 0)
        self.assertIn("broken.ast.json", log.read_text(encoding="utf-8"))

    def test_stdin_to_stdout(self):
        tree = t.module(t.jsx_element("FormattedMessage", t.jsx_attrs(("defaultMessage", "foo"))))
        args = build_arg_parser().parse_args(["--target", "-"])
        out = io.StringIO()
        with patch("sys.stdin", io.StringIO(json.dumps(tree))), contextlib.redirect_stdout(out):
            code = run_cli(args)
        self.assertEqual(code, 0)
        self.assertEqual(collect_ids(json.loads(out.getvalue())), ["C+7Hte"])

    def test_stdin_garbage(self):
        args = build_arg_parser().parse_args(["--target", "-"])
        with patch("sys.stdin", io.StringIO("not json")), self.assertLogs("intl_id_injector", level="ERROR"):
            code = run_cli(args)
        self.assertEqual(code, 2)


class TestHelpers(unittest.TestCase):

    def test_is_ignored(self):
        base = pathlib.Path("/repo")
        self.assertTrue(is_ignored(base, base / "dist" / "x.ast.json", ["dist/*"]))
        self.assertFalse(is_ignored(base, base / "src" / "x.ast.json", ["dist/*"]))
        self.assertTrue(is_ignored(base, pathlib.Path("/elsewhere/x.ast.json"), []))
        self.assertTrue(is_ignored(base, base / "node_modules" / "x.ast.json", ["**/node_modules/**"]))
        self.assertTrue(is_ignored(base, base / "a" / "node_modules" / "x.ast.json", ["**/node_modules/**"]))

    def test_atomic_write_preserves_mode(self):
        with tempfile.TemporaryDirectory() as d:
            p = pathlib.Path(d) / "f.json"
            p.write_text("old", encoding="utf-8")
            os.chmod(p, 0o640)
            atomic_write(p, "new")
            self.assertEqual(p.read_text(encoding="utf-8"), "new")
            self.assertEqual(stat.S_IMODE(p.stat().st_mode), 0o640)
            self.assertEqual(sorted(x.name for x in pathlib.Path(d).iterdir()), ["f.json"])

    def test_load_transformer_class(self):
        self.assertIs(load_transformer_class(), FormatJsTransformer)
        with self.assertRaises(TypeError):
            load_transformer_class("intl_id_injector.visitor.Visitor")


if __name__ == "__main__":
    unittest.main()
