"""Tests for the command line interface."""

import json
import logging

import pytest

from devcompare.main import EXIT_DIFFERENT, EXIT_ERROR, EXIT_IDENTICAL, main, parse_arguments
from devcompare.services.settings import OutputFormat

pytestmark = pytest.mark.cli


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def run(config_path):
    def _run(*args):
        return main(["--config", str(config_path), *map(str, args)])
    return _run


def test_identical_files(run, make_file, capsys):
    path = make_file("a.txt", "same\ntext\n")
    assert run(path, path) == EXIT_IDENTICAL
    assert capsys.readouterr().out == ""


def test_different_files_print_unified_diff(run, make_file, capsys):
    old = make_file("old.txt", "a\nb\nc")
    new = make_file("new.txt", "a\nx\nc")
    assert run(old, new) == EXIT_DIFFERENT

    out = capsys.readouterr().out.splitlines()
    assert out[0] == f"--- {old}"
    assert out[1] == f"+++ {new}"
    assert out[2:] == ["@@ -1,3 +1,3 @@", " a", "-b", "+x", " c"]


def test_context_option(run, make_file, capsys):
    old = make_file("old.txt", "a\nb\nc")
    new = make_file("new.txt", "a\nx\nc")
    run("--context", 0, old, new)
    assert "@@ -2 +2 @@" in capsys.readouterr().out


def test_ignore_case(run, make_file):
    old = make_file("old.txt", "Hello World")
    new = make_file("new.txt", "hello world")
    assert run(old, new) == EXIT_DIFFERENT
    assert run("--ignore-case", old, new) == EXIT_IDENTICAL


def test_ignore_whitespace(run, make_file):
    old = make_file("old.txt", "x = 1")
    new = make_file("new.txt", "x=1")
    assert run("-w", old, new) == EXIT_IDENTICAL


def test_json_format(run, make_file, capsys):
    old = make_file("old.txt", "a\nb")
    new = make_file("new.txt", "a\nc")
    assert run("--format", "json", old, new) == EXIT_DIFFERENT
    data = json.loads(capsys.readouterr().out)
    assert data["statistics"]["replace_groups"] == 1


def test_summary_format(run, make_file, capsys):
    old = make_file("old.txt", "a\nb")
    new = make_file("new.txt", "a\nc")
    run("--format", "summary", old, new)
    out = capsys.readouterr().out
    assert "+1 -1 =1" in out
    assert "similarity" in out
    assert "reading: 0.0 min -> 0.0 min" in out


def test_side_by_side_format(run, make_file, capsys):
    old = make_file("old.txt", "a\nb")
    new = make_file("new.txt", "a\nc")
    run("--format", "side-by-side", old, new)
    assert " | " in capsys.readouterr().out


def test_missing_file(run, make_file, tmp_path, capsys):
    assert run(make_file("a.txt", "x"), tmp_path / "missing.txt") == EXIT_ERROR
    assert "File not found" in capsys.readouterr().err


def test_binary_file(run, make_file, capsys):
    assert run(make_file("a.txt", "x"), make_file("b.bin", b"\x00\x01")) == EXIT_ERROR
    assert "binary" in capsys.readouterr().err


def test_max_size(run, make_file, capsys):
    old = make_file("old.txt", "x" * 100)
    assert run("--max-size", 10, old, old) == EXIT_ERROR
    assert "too large" in capsys.readouterr().err


def test_usage_error():
    assert main([]) == EXIT_ERROR


def test_config_file_is_applied(config_path, make_file):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({"comparison": {"ignore_case": True}}), encoding="utf-8")
    old = make_file("old.txt", "ABC")
    new = make_file("new.txt", "abc")
    assert main(["--config", str(config_path), str(old), str(new)]) == EXIT_IDENTICAL


def test_invalid_config_value(config_path, make_file, capsys):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({"comparison": {"max_lines": 0}}), encoding="utf-8")
    path = make_file("a.txt", "x")
    assert main(["--config", str(config_path), str(path), str(path)]) == EXIT_ERROR
    assert "invalid configuration" in capsys.readouterr().err


def test_log_file(run, make_file, tmp_path):
    log_file = tmp_path / "logs" / "devcompare.log"
    path = make_file("a.txt", "x")
    run("--log-level", "DEBUG", "--log-file", log_file, path, path)
    assert "Starting devcompare" in log_file.read_text(encoding="utf-8")


def test_log_reports_what_was_read(run, make_file, tmp_path):
    log_file = tmp_path / "devcompare.log"
    old = make_file("old.txt", b"\xef\xbb\xbfone\ntwo")
    new = make_file("new.txt", "one\n")
    run("--log-level", "INFO", "--log-file", log_file, old, new)

    log = log_file.read_text(encoding="utf-8")
    assert f"Read {old}: 2 lines, utf-8-sig with BOM" in log
    assert f"Read {new}: 2 lines, utf-8" in log


def test_parse_arguments():
    args = parse_arguments(["-i", "--no-intraline", "--format", "json", "old", "new"])
    assert args.ignore_case
    assert args.no_intraline
    assert args.output_format is OutputFormat.JSON
    assert (args.old_path, args.new_path) == ("old", "new")
