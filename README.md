# goplsbridge

A small library that runs the `gopls` command-line tool and turns what it
prints into plain Python objects. It handles Go repositories that hold one
module, several modules, or a `go.work` workspace.

## Requirements

- Python 3.10 or later
- `gopls` on your `PATH`, or the full path to it set in `GoplsConfig.gopls_path`

The package has no third-party dependencies.

## Usage

```python
from pathlib import Path

from goplsbridge.runner import GoplsConfig, GoplsRunner

root = Path("/path/to/repo")
runner = GoplsRunner(root, GoplsConfig())

if runner.available:
    target = root / "main.go"
    definition = runner.definition(target, 10, 6)
    print(definition.location.path, definition.location.range.start.line)
    print(definition.description)

    for ref in runner.references(target, 10, 6, include_decl=True):
        print(ref.path, ref.range.start.line, ref.range.start.column)

    hierarchy = runner.call_hierarchy(target, 10, 6)
    for link in hierarchy.callees:
        print(link.target.name, link.target.location.path)
```

`GoplsRunner(root_dir, config=None)` checks once whether `gopls version` runs
successfully and records the answer in `runner.available`. It does not raise
when gopls is missing. The queries themselves raise `GoplsMissingError` in that
case.

### Queries

Every method of `GoplsRunner` runs one `gopls` subcommand:

| Method | Returns |
| --- | --- |
| `definition(abs_file, line, col)` | `DefinitionResult` (location and description) |
| `references(abs_file, line, col, include_decl)` | `list[Location]` |
| `implementation(abs_file, line, col)` | `list[Location]` |
| `highlight(abs_file, line, col)` | `list[Location]` |
| `signature(abs_file, line, col)` | `str` |
| `check(abs_file)` | `list[Diagnostic]` |
| `symbols(abs_file)` | `list[DocumentSymbol]` |
| `call_hierarchy(abs_file, line, col)` | `CallHierarchyResult` (identifier, callers, callees) |
| `workspace_symbol(query, module_cwds)` | `list[WorkspaceSymbol]` |

`workspace_symbol` runs once in each directory you give it. It skips any
directory where gopls exits with an error, and it drops results that repeat the
same path, start position and name. To get the directories, call
`module_cwds_for_workspace_symbol()`:

- If the root holds `go.work` or `go.mod`, it returns the root alone.
- Otherwise it returns the directories that hold a `go.mod`, at most 32 of
  them, sorted. Inside a git repository it skips anything excluded by
  `.gitignore` files or `.git/info/exclude`.
- If it finds none, it returns the root.

### Choosing the working directory

Each file-based query runs `gopls` in the workspace that the file belongs to,
as `GoWorkspaceResolver` in `goplsbridge.workspace` decides:

- If the repository root holds a `go.work`, the root is used.
- For a file outside the root, the root is used.
- Otherwise the nearest directory at or above the file that holds a `go.mod`
  is used. If there is none, the root is used.

Results are cached per directory. You can use the resolver on its own:

```python
from goplsbridge.workspace import GoWorkspaceResolver

resolver = GoWorkspaceResolver("/path/to/repo")
print(resolver.workspace_for_file("/path/to/repo/a/sub/main.go"))
```

### Locations

The classes `Position`, `Range`, `Location` and `FilePosition` live in
`goplsbridge.locations`, and all of them are frozen dataclasses. Lines and
columns start at 1. A `Location.path` is relative to the repository root,
written with `/`, when the file lies inside the root. Otherwise it is the path
as gopls printed it.

Three helpers in `goplsbridge.locations` work with paths:

- `parse_file_position("pkg/a.go:12:3")` returns a `FilePosition`. It returns
  `None` when the text is malformed, or when the line or the column is 0.
- `resolve_path(root_dir, path)` returns absolute paths unchanged. It joins
  relative paths onto the root.
- `normalize_path(root_dir, abs_path)` returns the repository-relative form
  described above.

### Remote daemon and timeouts

`GoplsConfig` has three fields:

- `gopls_path`, default `"gopls"`
- `remote`, default `""`, meaning no remote
- `timeout_ms`, default `10000`

A non-empty `remote` is passed to gopls as `-remote=<value>`. The timeout is
never allowed below 50 ms. This applies both in the config and when you set
`runner.timeout_ms`.

With `remote="auto"`, a call that times out is tried once more with a
15-second timeout, to give the daemon time to start. If gopls reports that it
could not dial the remote, what happens depends on the setting:

- When `remote` starts with `auto`, the runner drops the remote setting for the
  rest of its life and reruns the call locally.
- With any other remote, the runner raises `GoplsFailedError`.

### Errors

Every failure raises a subclass of `GoplsError` from `goplsbridge.parsing`:

| Error | Raised when |
| --- | --- |
| `GoplsMissingError` | the binary could not be started |
| `GoplsTimeoutError` | a call ran longer than the timeout (`timeout_ms` attribute) |
| `GoplsFailedError` | gopls exited with a non-zero status (`status`, `stderr` attributes) |
| `GoplsParseError` | the output or a URI could not be read |

### Parsing output yourself

The parsers in `goplsbridge.parsing` accept `bytes` or `str`, so you can apply
them to output you captured yourself:

- `parse_abs_location`
- `parse_line_range`
- `parse_same_line_range`
- `parse_location_lines`
- `parse_symbols`
- `parse_workspace_symbols`
- `parse_diagnostics`
- `parse_definition`, for the JSON printed by `gopls definition -json`
- `parse_identifier_line`
- `parse_call_link_line`
- `parse_call_hierarchy`
- `uri_to_path`, which converts `file://` URIs

In the line-based parsers, lines that do not hold a location are skipped.

## What it does not do

This is a library only. It has no command-line program and no index or
storage. It does not keep a language-server session open: each query starts a
fresh `gopls` process, or a client of a `gopls` daemon when `remote` is set.