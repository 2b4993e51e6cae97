from goplsbridge.workspace import GoWorkspaceResolver


def test_workspace_resolver_prefers_go_work(tmp_path):
    (tmp_path / "go.work").write_text("go 1.22\n")
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "go.mod").write_text("module example.com/a\n")
    file = tmp_path / "a" / "main.go"
    file.write_text("package main\n")
    resolver = GoWorkspaceResolver(tmp_path)
    assert resolver.workspace_for_file(file) == tmp_path


def test_workspace_resolver_finds_nearest_go_mod(tmp_path):
    (tmp_path / "a" / "sub").mkdir(parents=True)
    (tmp_path / "a" / "go.mod").write_text("module example.com/a\n\ngo 1.22\n")
    file = tmp_path / "a" / "sub" / "main.go"
    file.write_text("package sub\n")
    resolver = GoWorkspaceResolver(tmp_path)
    assert resolver.workspace_for_file(file) == tmp_path / "a"


def test_workspace_resolver_falls_back_to_root(tmp_path):
    file = tmp_path / "main.go"
    file.write_text("package main\n")
    resolver = GoWorkspaceResolver(tmp_path)
    assert resolver.workspace_for_file(file) == tmp_path


def test_workspace_resolver_file_outside_root(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    other = tmp_path / "elsewhere"
    other.mkdir()
    (other / "go.mod").write_text("module example.com/x\n")
    resolver = GoWorkspaceResolver(root)
    assert resolver.workspace_for_file(other / "x.go") == root


def test_workspace_resolver_caches_per_directory(tmp_path):
    (tmp_path / "a").mkdir()
    file = tmp_path / "a" / "main.go"
    resolver = GoWorkspaceResolver(tmp_path)
    assert resolver.workspace_for_file(file) == tmp_path
    (tmp_path / "a" / "go.mod").write_text("module example.com/a\n")
    assert resolver.workspace_for_file(file) == tmp_path
    assert GoWorkspaceResolver(tmp_path).workspace_for_file(file) == tmp_path / "a"


def test_workspace_root_default_is_root(tmp_path):
    (tmp_path / "go.mod").write_text("module example.com/r\n")
    assert GoWorkspaceResolver(tmp_path).workspace_root_default() == tmp_path