from pathlib import Path

from goplsbridge.locations import (
    FilePosition,
    Location,
    Position,
    Range,
    normalize_path,
    parse_file_position,
    resolve_path,
)


def test_parse_file_position_basic():
    assert parse_file_position("src/main.go:12:5") == FilePosition("src/main.go", 12, 5)


def test_parse_file_position_keeps_colons_in_path():
    pos = parse_file_position("C:/work/a.go:3:4")
    assert pos is not None
    assert pos.path == "C:/work/a.go"
    assert (pos.line, pos.column) == (3, 4)


def test_parse_file_position_rejects_zero():
    assert parse_file_position("a.go:0:1") is None
    assert parse_file_position("a.go:1:0") is None


def test_parse_file_position_rejects_malformed():
    assert parse_file_position("a.go:1") is None
    assert parse_file_position("a.go") is None
    assert parse_file_position("a.go:x:2") is None
    assert parse_file_position("a.go:1:-2") is None


def test_parse_file_position_rejects_overflow():
    assert parse_file_position("a.go:99999999999:1") is None


def test_resolve_path_absolute_unchanged(tmp_path):
    absolute = tmp_path / "x" / "y.go"
    assert resolve_path(tmp_path, str(absolute)) == absolute


def test_resolve_path_relative_joined(tmp_path):
    assert resolve_path(tmp_path, "pkg/a.go") == tmp_path / "pkg" / "a.go"


def test_normalize_path_inside_root(tmp_path):
    target = tmp_path / "pkg" / "a.go"
    target.parent.mkdir()
    target.write_text("package pkg\n")
    assert normalize_path(tmp_path, target) == "pkg/a.go"


def test_normalize_path_missing_file_inside_root(tmp_path):
    assert normalize_path(tmp_path, tmp_path / "nope" / "b.go") == "nope/b.go"


def test_normalize_path_outside_root(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    outside = tmp_path / "other" / "c.go"
    assert normalize_path(root, outside) == str(outside)


def test_normalize_then_resolve_round_trip(tmp_path):
    target = tmp_path / "d" / "e.go"
    relative = normalize_path(tmp_path, target)
    assert resolve_path(tmp_path, relative) == target


def test_location_equality():
    rng = Range(Position(1, 2), Position(1, 5))
    assert Location("a.go", rng) == Location("a.go", Range(Position(1, 2), Position(1, 5)))
    assert Location("a.go", rng).range.end.column == 5