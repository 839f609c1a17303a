"""Unit tests for context hashing and atomic file writes."""

from __future__ import annotations

from pathlib import Path

import pytest

from open_tasks.utils.fs import atomic_write
from open_tasks.utils.hashing import context_hash, sha256_bytes, sha256_text

LINES = [
    "class A {",
    "    void a() {}",
    "    // TODO split this",
    "    void b() {}",
    "}",
]


@pytest.mark.unit
def test_sha256_helpers() -> None:
    expected = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    assert sha256_bytes(b"hello") == expected
    assert sha256_text("hello") == expected
    assert context_hash("A.java", "TODO", ["  // TODO x  "], 1, radius=0) == sha256_text(
        "A.java\x00TODO\x00// TODO x"
    )


@pytest.mark.unit
def test_context_hash_ignores_indentation_and_absolute_line_numbers() -> None:
    base = context_hash("A.java", "TODO", LINES, 3)
    reindented = [line.strip() for line in LINES]
    shifted = ["// header", "", *LINES]

    assert base == context_hash("A.java", "TODO", reindented, 3)
    assert base != context_hash("A.java", "TODO", shifted, 5)
    assert context_hash("A.java", "TODO", shifted, 5, radius=1) == context_hash(
        "A.java", "TODO", LINES, 3, radius=1
    )


@pytest.mark.unit
def test_context_hash_depends_on_path_tag_and_neighbourhood() -> None:
    base = context_hash("A.java", "TODO", LINES, 3)
    changed = [*LINES[:1], "    void renamed() {}", *LINES[2:]]

    assert base != context_hash("B.java", "TODO", LINES, 3)
    assert base != context_hash("A.java", "FIXME", LINES, 3)
    assert base != context_hash("A.java", "TODO", changed, 3)
    assert context_hash("A.java", "TODO", changed, 3, radius=0) == context_hash(
        "A.java", "TODO", LINES, 3, radius=0
    )


@pytest.mark.unit
def test_context_hash_rejects_negative_radius() -> None:
    with pytest.raises(ValueError):
        context_hash("A.java", "TODO", LINES, 3, radius=-1)


@pytest.mark.unit
def test_atomic_write_creates_parents_and_replaces(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "dir" / "out.json"

    atomic_write(target, "first")
    atomic_write(target, b"second")

    assert target.read_bytes() == b"second"
    assert [item.name for item in target.parent.iterdir()] == ["out.json"]


@pytest.mark.unit
def test_atomic_write_honours_encoding(tmp_path: Path) -> None:
    target = tmp_path / "latin.txt"

    atomic_write(target, "caf\xe9", encoding="latin-1")

    assert target.read_bytes() == b"caf\xe9"
