"""Tests for the command line entry point."""

import pytest

from diaclass import setting
from diaclass.__main__ import main


def _write(path, text=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(setting.CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(setting.LOG_LEVEL_ENV_VAR, raising=False)


@pytest.fixture
def sources(tmp_path):
    folder = tmp_path / "Shop"
    _write(folder / "Base.cs", "public class Base { }")
    _write(folder / "A.cs", "public class A : Base { private Used _used; public class Inner { } }")
    _write(folder / "Used.cs", "public class Used { }")
    return folder


@pytest.fixture
def two_projects(tmp_path):
    sdk = '<Project Sdk="Microsoft.NET.Sdk"></Project>'
    _write(tmp_path / "Alpha" / "Alpha.csproj", sdk)
    _write(tmp_path / "Alpha" / "A.cs", "public class A { }")
    _write(tmp_path / "Beta" / "Beta.csproj", sdk)
    _write(tmp_path / "Beta" / "B.cs", "public class B { }")
    return tmp_path


class TestMain:
    def test_writes_documents(self, sources, tmp_path):
        out = tmp_path / "out"
        assert main([str(sources), "--output", str(out)]) == 0
        assert sorted(p.name for p in out.iterdir()) == ["Shop.mmd", "Shop.overview.puml", "Shop.puml"]
        assert "Base <|-- A" in (out / "Shop.puml").read_text(encoding="utf-8")

    def test_selected_format_and_kinds(self, sources, tmp_path):
        out = tmp_path / "out"
        code = main([str(sources), "--output", str(out), "--format", "plantuml", "--kinds", "Contains"])
        assert code == 0
        assert [p.name for p in out.iterdir()] == ["Shop.puml"]
        document = (out / "Shop.puml").read_text(encoding="utf-8")
        assert "A *-- A_Inner" in document
        assert "<|--" not in document

    def test_invalid_path(self, tmp_path):
        assert main([str(tmp_path / "missing")]) == 1

    def test_unknown_kind(self, sources, tmp_path):
        assert main([str(sources), "--output", str(tmp_path / "out"), "--kinds", "Aggregates"]) == 1
        assert not (tmp_path / "out").exists()

    def test_list_projects(self, two_projects, capsys):
        assert main([str(two_projects), "--list-projects"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert "Alpha" in lines
        assert "Beta" in lines

    def test_several_projects_need_a_choice(self, two_projects, tmp_path):
        out = tmp_path / "out"
        assert main([str(two_projects), "--output", str(out)]) == 1
        assert main([str(two_projects), "--output", str(out), "--project", "beta"]) == 0
        assert (out / "Beta.puml").exists()

    def test_unknown_project(self, two_projects):
        assert main([str(two_projects), "--project", "Gamma", "--list-types"]) == 1

    def test_list_types(self, sources, capsys):
        assert main([str(sources), "--list-types"]) == 0
        out = capsys.readouterr().out
        assert "./" in out.splitlines()
        assert "  public class A" in out.splitlines()
        assert "  public class A.Inner" in out.splitlines()
