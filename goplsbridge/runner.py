"""Running gopls commands and turning their output into results."""

from __future__ import annotations

import fnmatch
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from goplsbridge.locations import Location
from goplsbridge.parsing import (
    CallHierarchyResult,
    DefinitionResult,
    Diagnostic,
    DocumentSymbol,
    GoplsFailedError,
    GoplsMissingError,
    GoplsTimeoutError,
    WorkspaceSymbol,
    parse_call_hierarchy,
    parse_definition,
    parse_diagnostics,
    parse_location_lines,
    parse_symbols,
    parse_workspace_symbols,
)
from goplsbridge.workspace import GoWorkspaceResolver

_MIN_TIMEOUT_MS = 50
_COLD_TIMEOUT_MS = 15_000
_MAX_MODULES = 32


@dataclass
class GoplsConfig:
    """Settings for invoking gopls."""

    gopls_path: str = "gopls"
    remote: str = ""
    timeout_ms: int = 10_000


@dataclass(frozen=True)
class _CmdOutput:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def status(self) -> str:
        # A negative return code means the process was killed by a signal.
        return "signal" if self.returncode < 0 else str(self.returncode)

    def failure(self) -> GoplsFailedError:
        return GoplsFailedError(
            self.status, self.stderr.decode("utf-8", errors="replace").strip()
        )

    def ensure_success(self) -> None:
        if not self.success:
            raise self.failure()

    def looks_like_remote_dial_error(self) -> bool:
        combined = self.stdout + b"\n" + self.stderr
        return "dialing remote" in combined.decode("utf-8", errors="replace").lower()


@dataclass(frozen=True)
class _IgnoreRule:
    base: Path
    pattern: str
    negated: bool
    dir_only: bool
    anchored: bool

    def matches(self, path: Path, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        try:
            relative = path.relative_to(self.base).as_posix()
        except ValueError:
            return False
        if self.anchored:
            if fnmatch.fnmatchcase(relative, self.pattern):
                return True
            return self.pattern.startswith("**/") and fnmatch.fnmatchcase(
                relative, self.pattern[3:]
            )
        return fnmatch.fnmatchcase(path.name, self.pattern)


def _read_ignore_rules(ignore_file: Path, base: Path) -> list[_IgnoreRule]:
    try:
        text = ignore_file.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    rules = []
    for raw in text.splitlines():
        line = raw.rstrip()
        if not line or line.startswith("#"):
            continue
        negated = line.startswith("!")
        if negated:
            line = line[1:]
        if line.startswith("\\"):
            line = line[1:]
        dir_only = line.endswith("/")
        line = line.rstrip("/")
        if not line:
            continue
        anchored = "/" in line
        rules.append(_IgnoreRule(base, line.lstrip("/"), negated, dir_only, anchored))
    return rules


def _is_ignored(rules: list[_IgnoreRule], path: Path, is_dir: bool) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(path, is_dir):
            ignored = not rule.negated
    return ignored


def _find_module_dirs(root: Path, limit: int) -> list[Path]:
    """Collect directories holding go.mod, honouring .gitignore inside git repositories."""
    in_git = any((candidate / ".git").exists() for candidate in (root, *root.parents))
    base_rules: list[_IgnoreRule] = []
    if in_git:
        base_rules = _read_ignore_rules(root / ".git" / "info" / "exclude", root)

    found: list[Path] = []
    stack: list[tuple[Path, list[_IgnoreRule]]] = [(root, base_rules)]
    while stack:
        directory, inherited = stack.pop()
        rules = inherited
        if in_git:
            rules = inherited + _read_ignore_rules(directory / ".gitignore", directory)
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            continue
        subdirs = []
        for entry in entries:
            if entry.name == ".git":
                continue
            path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            if _is_ignored(rules, path, is_dir):
                continue
            if is_dir:
                subdirs.append(path)
            elif is_file and entry.name == "go.mod":
                found.append(directory)
                if len(found) >= limit:
                    return found
        stack.extend((sub, rules) for sub in reversed(subdirs))
    return found


class GoplsRunner:
    """Invoke gopls subcommands for files inside a repository."""

    def __init__(self, root_dir: str | os.PathLike[str], config: GoplsConfig | None = None) -> None:
        config = config if config is not None else GoplsConfig()
        self.root_dir = Path(root_dir)
        self.gopls_path = config.gopls_path.strip()
        remote = config.remote.strip()
        self.remote: str | None = remote or None
        self._timeout_ms = max(config.timeout_ms, _MIN_TIMEOUT_MS)
        self._resolver = GoWorkspaceResolver(self.root_dir)
        self.available = self._probe_available()

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @timeout_ms.setter
    def timeout_ms(self, value: int) -> None:
        self._timeout_ms = max(value, _MIN_TIMEOUT_MS)

    def _probe_available(self) -> bool:
        try:
            completed = subprocess.run(
                [self.gopls_path, "version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            return False
        return completed.returncode == 0

    def _base_cmd(self) -> list[str]:
        cmd = [self.gopls_path]
        if self.remote is not None:
            cmd.append(f"-remote={self.remote}")
        return cmd

    def _run(self, cwd: Path, args: list[str]) -> _CmdOutput:
        out = self._run_inner(cwd, args, self._timeout_ms, allow_retry=True)
        if self.remote is not None and out.looks_like_remote_dial_error():
            if self.remote.strip().lower().startswith("auto"):
                # A broken -remote=auto is dropped for the rest of this runner's life.
                self.remote = None
                return self._run_inner(cwd, args, self._timeout_ms, allow_retry=False)
            raise out.failure()
        return out

    def _run_inner(
        self, cwd: Path, args: list[str], timeout_ms: int, allow_retry: bool
    ) -> _CmdOutput:
        cmd = self._base_cmd() + args
        try:
            completed = subprocess.run(
                cmd, cwd=cwd, capture_output=True, timeout=timeout_ms / 1000
            )
        except subprocess.TimeoutExpired as err:
            # -remote=auto may be slow on first run while the daemon starts.
            if (
                allow_retry
                and self.remote is not None
                and self.remote.strip().lower() == "auto"
                and timeout_ms < _COLD_TIMEOUT_MS
            ):
                return self._run_inner(cwd, args, _COLD_TIMEOUT_MS, allow_retry=False)
            raise GoplsTimeoutError(timeout_ms) from err
        except OSError as err:
            raise GoplsMissingError(
                f"spawn gopls={self.gopls_path} (cwd={cwd}) failed: {err}"
            ) from err
        return _CmdOutput(completed.returncode, completed.stdout, completed.stderr)

    def _run_at(self, abs_file: str | os.PathLike[str], args: list[str]) -> _CmdOutput:
        cwd = self._resolver.workspace_for_file(abs_file)
        out = self._run(cwd, args)
        out.ensure_success()
        return out

    @staticmethod
    def _pos(abs_file: str | os.PathLike[str], line: int, col: int) -> str:
        return f"{os.fspath(abs_file)}:{line}:{col}"

    def definition(self, abs_file, line: int, col: int) -> DefinitionResult:
        """Where the identifier at the position is defined."""
        out = self._run_at(abs_file, ["definition", "-json", self._pos(abs_file, line, col)])
        return parse_definition(self.root_dir, out.stdout)

    def references(self, abs_file, line: int, col: int, include_decl: bool) -> list[Location]:
        """All references to the identifier at the position."""
        args = ["references", self._pos(abs_file, line, col)]
        if include_decl:
            args.insert(1, "-declaration")
        out = self._run_at(abs_file, args)
        return parse_location_lines(self.root_dir, out.stdout)

    def implementation(self, abs_file, line: int, col: int) -> list[Location]:
        """Implementations of the interface or method at the position."""
        out = self._run_at(abs_file, ["implementation", self._pos(abs_file, line, col)])
        return parse_location_lines(self.root_dir, out.stdout)

    def highlight(self, abs_file, line: int, col: int) -> list[Location]:
        """Occurrences of the identifier at the position within its file."""
        out = self._run_at(abs_file, ["highlight", self._pos(abs_file, line, col)])
        return parse_location_lines(self.root_dir, out.stdout)

    def signature(self, abs_file, line: int, col: int) -> str:
        """Signature help text for the call at the position."""
        out = self._run_at(abs_file, ["signature", self._pos(abs_file, line, col)])
        return out.stdout.decode("utf-8", errors="replace").strip()

    def check(self, abs_file) -> list[Diagnostic]:
        """Diagnostics reported for a file."""
        out = self._run_at(abs_file, ["check", os.fspath(abs_file)])
        return parse_diagnostics(self.root_dir, out.stdout)

    def symbols(self, abs_file) -> list[DocumentSymbol]:
        """Symbols declared in a file."""
        out = self._run_at(abs_file, ["symbols", os.fspath(abs_file)])
        return parse_symbols(out.stdout)

    def workspace_symbol(self, query: str, module_cwds) -> list[WorkspaceSymbol]:
        """Search symbols in each module directory, dropping duplicates."""
        results: list[WorkspaceSymbol] = []
        seen: set[tuple[str, int, int, str]] = set()
        for cwd in module_cwds:
            out = self._run(Path(cwd), ["workspace_symbol", query])
            if not out.success:
                continue
            for item in parse_workspace_symbols(self.root_dir, out.stdout):
                start = item.location.range.start
                key = (item.location.path, start.line, start.column, item.name)
                if key not in seen:
                    seen.add(key)
                    results.append(item)
        return results

    def call_hierarchy(self, abs_file, line: int, col: int) -> CallHierarchyResult:
        """Callers and callees of the function at the position."""
        out = self._run_at(abs_file, ["call_hierarchy", self._pos(abs_file, line, col)])
        return parse_call_hierarchy(self.root_dir, out.stdout)

    def module_cwds_for_workspace_symbol(self) -> list[Path]:
        """Directories to run workspace_symbol in: the root, or each module found under it."""
        if (self.root_dir / "go.work").exists() or (self.root_dir / "go.mod").exists():
            return [self._resolver.workspace_root_default()]
        modules = sorted(set(_find_module_dirs(self.root_dir, _MAX_MODULES)))
        return modules or [self.root_dir]