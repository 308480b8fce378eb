"""Tests for fixture loading and subtest splitting."""

from __future__ import annotations

from pathlib import Path

import pytest

from proofbench.harness.fixtures import (
    FixtureError,
    is_header,
    line_count,
    lines_of,
    load_test_file,
    parse_test_file,
    split_parts,
)
from tests.conftest import SAMPLE_FIXTURE


class TestLines:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("", 0), ("a", 1), ("a\n", 1), ("a\nb", 2), ("\n", 1), ("\na", 2)],
    )
    def test_line_count(self, text: str, expected: int) -> None:
        assert line_count(text) == expected

    def test_carriage_returns_are_dropped(self) -> None:
        assert lines_of("a\r\nb\r\n") == ["a", "b"]


class TestSplit:
    def test_parts(self) -> None:
        assert split_parts("a\n---\nb") == ["a", "\nb"]

    def test_trailing_carriage_return(self) -> None:
        assert split_parts("a\r\n---\r\nb") == ["a", "\r\nb"]

    def test_single_part_is_never_a_header(self) -> None:
        assert not is_header(0, ["// only comments"])

    def test_comment_part_followed_by_more_is_a_header(self) -> None:
        parts = ["// Ref: false\n\n// more", "x"]
        assert is_header(0, parts)
        assert not is_header(1, parts)

    def test_code_in_first_part_is_not_a_header(self) -> None:
        assert not is_header(0, ["// note\nHello", "x"])


class TestParseTestFile:
    def test_sample(self) -> None:
        test_file = parse_test_file(Path("sample.pbt"), SAMPLE_FIXTURE)
        assert test_file.has_header
        assert test_file.compare_ref is False
        assert len(test_file.parts) == 3
        assert test_file.lines == (0, 2, 5)

    def test_subtests_skip_header(self) -> None:
        subtests = parse_test_file(Path("sample.pbt"), SAMPLE_FIXTURE).subtests()
        assert [s.index for s in subtests] == [1, 2]
        assert all(s.compare_ref is False for s in subtests)
        assert subtests[0].text == "\nHello *World*"

    def test_without_header_compares_by_default(self) -> None:
        test_file = parse_test_file(Path("plain.pbt"), "Hello\n---\nWorld")
        assert not test_file.has_header
        assert test_file.compare_ref is True
        assert [s.index for s in test_file.subtests()] == [0, 1]

    def test_name(self) -> None:
        assert parse_test_file(Path("dir/name.pbt"), "x").name == "name.pbt"


class TestLoad:
    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "a.pbt"
        path.write_text("Hello", encoding="utf-8")
        assert load_test_file(path).parts == ("Hello",)

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.pbt"
        path.write_bytes(b"\xff\xfe")
        with pytest.raises(FixtureError, match="not valid utf-8"):
            load_test_file(path)

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FixtureError):
            load_test_file(tmp_path / "missing.pbt")
