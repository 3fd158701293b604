"""Tests for pyproject.toml rewriting."""

from __future__ import annotations

from pathlib import Path

import tomlkit

from pyreleaser.manifest import PyprojectEditor, pin_requirement
from pyreleaser.planning import Plan, ReleaseEntry, RemoveDep, RemoveFeature, RewriteDep
from pyreleaser.workspace import Package

MANIFEST = """\
# keep this comment
[project]
name = "pkg-b"
version = "2.0.0"
dependencies = [
    "pkg-a>=1.0",
    "vendored",
    "requests>=2",
]

[project.optional-dependencies]
fast = ["pkg-a[speedups]", "orjson"]
dev = ["pytest"]

[tool.uv.sources]
pkg-a = { workspace = true }
vendored = { git = "https://example.com/vendored.git" }
"""


def setup_package(tmp_path: Path, text: str = MANIFEST) -> Package:
    (tmp_path / "pyproject.toml").write_text(text)
    return Package(
        name="pkg-b",
        version="2.0.0",
        path=tmp_path,
        dependencies=frozenset({"pkg-a"}),
        external_dependencies=frozenset({"vendored", "requests", "orjson"}),
        git_dependencies=frozenset({"vendored"}),
    )


def make_plan(entry: ReleaseEntry) -> Plan:
    return Plan(
        package=[ReleaseEntry(name="pkg-a", from_version="1.0.0", to_version="2.0.0"), entry]
    )


def test_pin_requirement_keeps_extras_and_markers() -> None:
    assert pin_requirement("Pkg[b,a]>=1", "2.0.0") == "Pkg[a,b]==2.0.0"
    assert pin_requirement('x; python_version < "3.11"', "1.0") == 'x==1.0; python_version < "3.11"'


def test_version_and_pins(tmp_path: Path) -> None:
    package = setup_package(tmp_path)
    entry = ReleaseEntry(name="pkg-b", from_version="2.0.0", to_version="3.0.0")

    result = PyprojectEditor().apply(package, entry, make_plan(entry))

    assert result.success
    assert result.changed
    text = (tmp_path / "pyproject.toml").read_text()
    doc = tomlkit.parse(text)
    assert doc["project"]["version"] == "3.0.0"
    assert list(doc["project"]["dependencies"]) == ["pkg-a==2.0.0", "vendored", "requests>=2"]
    assert list(doc["project"]["optional-dependencies"]["fast"]) == [
        "pkg-a[speedups]==2.0.0",
        "orjson",
    ]
    assert text.startswith("# keep this comment\n")


def test_rewrite_dep_and_remove_feature(tmp_path: Path) -> None:
    package = setup_package(tmp_path)
    entry = ReleaseEntry(
        name="pkg-b",
        from_version="2.0.0",
        to_version="3.0.0",
        rewrite_dep=[RewriteDep(name="vendored", version="0.5.0")],
        remove_feature=[
            RemoveFeature(feature="dev"),
            RemoveFeature(feature="fast", value="orjson"),
        ],
    )

    result = PyprojectEditor().apply(package, entry, make_plan(entry))

    assert result.success
    doc = tomlkit.parse((tmp_path / "pyproject.toml").read_text())
    assert "vendored==0.5.0" in doc["project"]["dependencies"]
    assert "vendored" not in doc["tool"]["uv"]["sources"]
    assert "pkg-a" in doc["tool"]["uv"]["sources"]
    assert "dev" not in doc["project"]["optional-dependencies"]
    assert list(doc["project"]["optional-dependencies"]["fast"]) == ["pkg-a[speedups]==2.0.0"]


def test_rewrite_dep_to_path(tmp_path: Path) -> None:
    package = setup_package(tmp_path)
    entry = ReleaseEntry(
        name="pkg-b",
        from_version="2.0.0",
        to_version="3.0.0",
        rewrite_dep=[RewriteDep(name="vendored", path="../vendored")],
    )
    PyprojectEditor().apply(package, entry, make_plan(entry))
    doc = tomlkit.parse((tmp_path / "pyproject.toml").read_text())
    assert doc["tool"]["uv"]["sources"]["vendored"]["path"] == "../vendored"


def test_unchanged_manifest(tmp_path: Path) -> None:
    package = setup_package(tmp_path, '[project]\nname = "pkg-b"\nversion = "2.0.0"\n')
    entry = ReleaseEntry(name="pkg-b", from_version="2.0.0", to_version="2.0.0", publish=False)
    result = PyprojectEditor().apply(package, entry, make_plan(entry))
    assert result.success
    assert not result.changed


def test_missing_feature_is_failure(tmp_path: Path) -> None:
    package = setup_package(tmp_path)
    entry = ReleaseEntry(
        name="pkg-b",
        from_version="2.0.0",
        to_version="3.0.0",
        remove_feature=[RemoveFeature(feature="nope")],
    )
    result = PyprojectEditor().apply(package, entry, make_plan(entry))
    assert not result.success
    assert "nope" in (result.error or "")
    assert (tmp_path / "pyproject.toml").read_text() == MANIFEST


def test_missing_manifest_is_failure(tmp_path: Path) -> None:
    package = Package(name="ghost", version="1.0.0", path=tmp_path / "ghost")
    entry = ReleaseEntry(name="ghost", from_version="1.0.0", to_version="2.0.0")
    result = PyprojectEditor().apply(package, entry, Plan(package=[entry]))
    assert not result.success
    assert "cannot read" in (result.error or "")


def test_dynamic_version_is_failure(tmp_path: Path) -> None:
    text = '[project]\nname = "pkg-b"\ndynamic = ["version"]\n'
    package = setup_package(tmp_path, text)
    entry = ReleaseEntry(name="pkg-b", from_version="2.0.0", to_version="3.0.0")

    result = PyprojectEditor().apply(package, entry, make_plan(entry))

    assert not result.success
    assert "dynamic version" in (result.error or "")
    assert (tmp_path / "pyproject.toml").read_text() == text


def test_remove_dep_everywhere(tmp_path: Path) -> None:
    package = setup_package(tmp_path)
    entry = ReleaseEntry(
        name="pkg-b",
        from_version="2.0.0",
        to_version="3.0.0",
        remove_dep=[RemoveDep(name="Vendored"), RemoveDep(name="orjson")],
    )

    result = PyprojectEditor().apply(package, entry, make_plan(entry))

    assert result.success
    doc = tomlkit.parse((tmp_path / "pyproject.toml").read_text())
    assert list(doc["project"]["dependencies"]) == ["pkg-a==2.0.0", "requests>=2"]
    assert list(doc["project"]["optional-dependencies"]["fast"]) == ["pkg-a[speedups]==2.0.0"]
    assert "vendored" not in doc["tool"]["uv"]["sources"]
    assert "pkg-a" in doc["tool"]["uv"]["sources"]
