import subprocess
from unittest import mock

import pytest

from klyra.base import Invocation, ToolError
from klyra.search import Search, default_search_args


def _completed(returncode, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["rg"], returncode=returncode, stdout=stdout, stderr=stderr)


def test_default_args_start_with_flags_and_end_with_pattern():
    args = default_search_args("needle", "")
    assert args[:2] == ["--line-number", "--hidden"]
    assert args[-1] == "needle"


def test_default_args_exclude_secrets_and_generated_dirs():
    args = default_search_args("needle", "")
    pairs = list(zip(args, args[1:]))
    for glob in ("!.git", "!node_modules", "!.env", "!.env.*", "!*.pem", "!*.pfx"):
        assert ("--glob", glob) in pairs


def test_user_glob_is_added_before_pattern():
    plain = default_search_args("needle", "")
    with_glob = default_search_args("needle", "*.go")
    assert with_glob[-3:] == ["--glob", "*.go", "needle"]
    assert with_glob.count("--glob") == plain.count("--glob") + 1


def test_spec_requires_pattern():
    spec = Search().spec()
    assert spec.name == "search"
    assert spec.parameters["required"] == ["pattern"]


def test_missing_pattern_raises():
    with pytest.raises(ToolError):
        Search().run(Invocation(cwd=".", args={}))


def test_exit_code_one_means_no_matches(tmp_path):
    with mock.patch("klyra.search.subprocess.run", return_value=_completed(1)) as run:
        result = Search().run(Invocation(cwd=str(tmp_path), args={"pattern": "needle"}))
    assert result.output == "no matches"
    assert run.call_args.args[0] == ["rg", *default_search_args("needle", "")]


def test_matches_are_returned(tmp_path):
    with mock.patch("klyra.search.subprocess.run", return_value=_completed(0, "a.go:1:needle\n")):
        result = Search().run(Invocation(cwd=str(tmp_path), args={"pattern": "needle", "glob": "*.go"}))
    assert result.output == "a.go:1:needle"


def test_output_is_compressed_to_max_lines(tmp_path):
    stdout = "\n".join(f"f.txt:{n}:needle" for n in range(1, 6)) + "\n"
    with mock.patch("klyra.search.subprocess.run", return_value=_completed(0, stdout)):
        result = Search().run(Invocation(cwd=str(tmp_path), args={"pattern": "needle", "max_lines": 2}))
    lines = result.output.split("\n")
    assert lines[:2] == ["f.txt:1:needle", "f.txt:2:needle"]
    assert len(lines) == 3


def test_other_exit_code_raises_search_failed(tmp_path):
    with mock.patch("klyra.search.subprocess.run", return_value=_completed(2, "", "regex parse error")):
        with pytest.raises(ToolError, match="search failed") as info:
            Search().run(Invocation(cwd=str(tmp_path), args={"pattern": "("}))
    assert "regex parse error" in info.value.output


def test_missing_ripgrep_raises_search_failed(tmp_path):
    with mock.patch("klyra.search.subprocess.run", side_effect=FileNotFoundError("rg")):
        with pytest.raises(ToolError, match="search failed"):
            Search().run(Invocation(cwd=str(tmp_path), args={"pattern": "needle"}))