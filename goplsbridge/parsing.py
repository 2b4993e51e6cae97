"""Errors, result types and parsers for gopls command-line output."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from goplsbridge.locations import Location, Position, Range, _parse_u32, normalize_path


class GoplsError(Exception):
    """Base class for gopls failures."""


class GoplsMissingError(GoplsError):
    """The gopls binary could not be started."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"gopls binary not found or not runnable: {detail}")
        self.detail = detail


class GoplsTimeoutError(GoplsError):
    """gopls did not finish in time."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"gopls timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class GoplsFailedError(GoplsError):
    """gopls exited unsuccessfully."""

    def __init__(self, status: str, stderr: str) -> None:
        super().__init__(f"gopls failed (exit={status}) stderr={stderr}")
        self.status = status
        self.stderr = stderr


class GoplsParseError(GoplsError):
    """gopls output could not be understood."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"failed to parse gopls output: {detail}")
        self.detail = detail


@dataclass(frozen=True)
class DocumentSymbol:
    name: str
    kind: str
    range: Range


@dataclass(frozen=True)
class WorkspaceSymbol:
    name: str
    kind: str
    location: Location


@dataclass(frozen=True)
class Diagnostic:
    location: Location
    message: str


@dataclass(frozen=True)
class DefinitionResult:
    location: Location
    description: str


@dataclass(frozen=True)
class CallHierarchyIdentifier:
    name: str
    kind: str
    location: Location


@dataclass(frozen=True)
class CallHierarchyTarget:
    name: str
    kind: str
    location: Location


@dataclass(frozen=True)
class CallHierarchyLink:
    direction: str
    callsite: Location
    target: CallHierarchyTarget


@dataclass
class CallHierarchyResult:
    identifier: CallHierarchyIdentifier | None = None
    callers: list[CallHierarchyLink] = field(default_factory=list)
    callees: list[CallHierarchyLink] = field(default_factory=list)


Output = bytes | str
PathLike = str | os.PathLike[str]

_RE_WITH_END_LINE = re.compile(
    r"^(?P<path>.+):(?P<sl>\d+):(?P<sc>\d+)-(?P<el>\d+):(?P<ec>\d+)", re.ASCII
)
_RE_SAME_LINE = re.compile(r"^(?P<path>.+):(?P<sl>\d+):(?P<sc>\d+)-(?P<ec>\d+)", re.ASCII)


def _decode(output: Output) -> str:
    if isinstance(output, str):
        return output
    return output.decode("utf-8", errors="replace")


def _lines(output: Output):
    """Yield the non-empty, stripped lines of the output."""
    for raw in _decode(output).split("\n"):
        line = raw.strip()
        if line:
            yield line


def _num(text: str, default: int) -> int:
    value = _parse_u32(text)
    return default if value is None else value


def uri_to_path(uri: str) -> Path:
    """Convert a ``file://`` URI into a filesystem path."""
    try:
        parsed = urlparse(uri)
    except ValueError as err:
        raise GoplsParseError(f"parse URI {uri}: {err}") from err
    if parsed.scheme != "file":
        raise GoplsParseError(f"unsupported URI {uri}")
    if parsed.netloc not in ("", "localhost"):
        raise GoplsParseError(f"unsupported file URI {uri}")
    return Path(url2pathname(parsed.path))


def parse_abs_location(line: str) -> tuple[Path, Range] | None:
    """Parse ``path:L:C-L:C`` or ``path:L:C-C``; return None when neither matches."""
    match = _RE_WITH_END_LINE.match(line)
    if match:
        sl = _num(match["sl"], 1)
        sc = _num(match["sc"], 1)
        el = _num(match["el"], sl)
        ec = _num(match["ec"], sc)
        return Path(match["path"]), Range(Position(sl, sc), Position(el, ec))
    match = _RE_SAME_LINE.match(line)
    if match:
        sl = _num(match["sl"], 1)
        sc = _num(match["sc"], 1)
        ec = _num(match["ec"], sc)
        return Path(match["path"]), Range(Position(sl, sc), Position(sl, ec))
    return None


def parse_line_range(text: str) -> Range | None:
    """Parse ``L:C-L:C``."""
    start, sep, end = text.partition("-")
    if not sep:
        return None
    sl, sep1, sc = start.partition(":")
    el, sep2, ec = end.partition(":")
    if not (sep1 and sep2):
        return None
    values = [_parse_u32(part) for part in (sl, sc, el, ec)]
    if any(v is None for v in values):
        return None
    return Range(Position(values[0], values[1]), Position(values[2], values[3]))


def parse_same_line_range(text: str) -> Range | None:
    """Parse ``L:C-C``."""
    sl, sep, rest = text.partition(":")
    if not sep:
        return None
    sc, sep, ec = rest.partition("-")
    if not sep:
        return None
    line, start_col, end_col = _parse_u32(sl), _parse_u32(sc), _parse_u32(ec)
    if line is None or start_col is None or end_col is None:
        return None
    return Range(Position(line, start_col), Position(line, end_col))


def parse_location_lines(root_dir: PathLike, output: Output) -> list[Location]:
    """Parse one location per line, skipping lines that are not locations."""
    locations = []
    for line in _lines(output):
        parsed = parse_abs_location(line)
        if parsed is None:
            continue
        abs_path, rng = parsed
        locations.append(Location(normalize_path(root_dir, abs_path), rng))
    return locations


def parse_symbols(output: Output) -> list[DocumentSymbol]:
    """Parse ``gopls symbols`` lines such as ``foo Function 3:6-3:9``."""
    symbols = []
    for line in _lines(output):
        parts = line.split()
        if len(parts) < 3:
            continue
        *name_parts, kind, range_text = parts
        rng = parse_line_range(range_text)
        if rng is None:
            raise GoplsParseError(f"bad symbol range: {range_text}")
        symbols.append(DocumentSymbol(" ".join(name_parts), kind, rng))
    return symbols


def parse_workspace_symbols(root_dir: PathLike, output: Output) -> list[WorkspaceSymbol]:
    """Parse ``gopls workspace_symbol`` lines such as ``/abs/a.go:9:6-9 Name Kind``."""
    symbols = []
    for line in _lines(output):
        parts = line.split()
        location_text = parts[0]
        kind = parts[-1] if len(parts) > 1 else ""
        name = " ".join(parts[1:-1])
        parsed = parse_abs_location(location_text)
        if parsed is None:
            continue
        abs_path, rng = parsed
        location = Location(normalize_path(root_dir, abs_path), rng)
        symbols.append(WorkspaceSymbol(name, kind, location))
    return symbols


def parse_diagnostics(root_dir: PathLike, output: Output) -> list[Diagnostic]:
    """Parse ``gopls check`` lines such as ``/abs/a.go:4:2-9: message``."""
    diagnostics = []
    for line in _lines(output):
        location_text, sep, message = line.partition(": ")
        if not sep:
            location_text, message = line, ""
        parsed = parse_abs_location(location_text)
        if parsed is None:
            continue
        abs_path, rng = parsed
        location = Location(normalize_path(root_dir, abs_path), rng)
        diagnostics.append(Diagnostic(location, message))
    return diagnostics


def _json_position(raw) -> Position:
    line, column, offset = raw["line"], raw["column"], raw["offset"]
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (line, column, offset)):
        raise TypeError("position fields must be integers")
    return Position(line & 0xFFFFFFFF, column & 0xFFFFFFFF)


def parse_definition(root_dir: PathLike, output: Output) -> DefinitionResult:
    """Parse the JSON printed by ``gopls definition -json``."""
    try:
        data = json.loads(_decode(output))
        span = data["span"]
        uri = span["uri"]
        description = data["description"]
        if not isinstance(uri, str) or not isinstance(description, str):
            raise TypeError("uri and description must be strings")
        rng = Range(_json_position(span["start"]), _json_position(span["end"]))
    except (ValueError, KeyError, TypeError) as err:
        raise GoplsParseError(f"parse gopls definition -json: {err}") from err
    path = normalize_path(root_dir, uri_to_path(uri))
    return DefinitionResult(Location(path, rng), description)


def parse_identifier_line(root_dir: PathLike, line: str) -> CallHierarchyIdentifier | None:
    """Parse ``identifier: function foo in /abs/main.go:3:6-9``."""
    prefix = "identifier: "
    if not line.startswith(prefix):
        return None
    rest = line[len(prefix):]
    kind_name, sep, location_text = rest.partition(" in ")
    if not sep:
        raise GoplsParseError(f"bad identifier line: {line}")
    kind, sep, name = kind_name.partition(" ")
    if not sep:
        kind, name = "symbol", kind_name
    parsed = parse_abs_location(location_text)
    if parsed is None:
        return None
    abs_path, rng = parsed
    return CallHierarchyIdentifier(name, kind, Location(normalize_path(root_dir, abs_path), rng))


def parse_call_link_line(root_dir: PathLike, line: str, prefix: str) -> CallHierarchyLink | None:
    """Parse a ``caller[i]:`` or ``callee[i]:`` line of ``gopls call_hierarchy``."""
    if not line.startswith(prefix):
        return None
    _, sep, rest = line.partition(": ranges ")
    if not sep:
        return None
    range_part, sep, rest = rest.partition(" in ")
    if not sep:
        raise GoplsParseError(f"bad call link line: {line}")
    callsite_range = parse_same_line_range(range_part)
    if callsite_range is None:
        raise GoplsParseError(f"bad callsite range in call link: {range_part}")
    path_part, sep, rest = rest.partition(" from/to ")
    if not sep:
        raise GoplsParseError(f"bad call link line: {line}")
    callsite = Location(normalize_path(root_dir, Path(path_part)), callsite_range)

    while rest.startswith("function "):
        rest = rest[len("function "):]
    target_name, sep, target_location = rest.partition(" in ")
    if not sep:
        raise GoplsParseError(f"bad call target in line: {line}")
    parsed = parse_abs_location(target_location)
    if parsed is None:
        return None
    abs_def, def_range = parsed
    target = CallHierarchyTarget(
        name=target_name.strip(),
        kind="function",
        location=Location(normalize_path(root_dir, abs_def), def_range),
    )
    return CallHierarchyLink(direction=prefix, callsite=callsite, target=target)


def parse_call_hierarchy(root_dir: PathLike, output: Output) -> CallHierarchyResult:
    """Parse the full output of ``gopls call_hierarchy``."""
    result = CallHierarchyResult()
    for line in _lines(output):
        identifier = parse_identifier_line(root_dir, line)
        if identifier is not None:
            result.identifier = identifier
            continue
        link = parse_call_link_line(root_dir, line, "caller")
        if link is not None:
            result.callers.append(link)
            continue
        link = parse_call_link_line(root_dir, line, "callee")
        if link is not None:
            result.callees.append(link)
    return result