"""Filesystem helpers for the docs browser: safe paths and tree listings."""

from pathlib import Path

DOC_SUFFIXES = (".md", ".markdown")


def safe_relative_path(base_dir, relative):
    """Resolve ``relative`` under ``base_dir`` or return ``None`` if it escapes."""
    if not relative:
        return None
    candidate = Path(str(relative).lstrip("/"))
    if candidate.is_absolute() or ".." in candidate.parts:
        return None
    try:
        base_resolved = Path(base_dir).resolve()
        candidate_resolved = (base_resolved / candidate).resolve()
    except OSError:
        return None
    try:
        candidate_resolved.relative_to(base_resolved)
    except ValueError:
        return None
    return candidate_resolved


def _is_hidden(path):
    return path.name.startswith(".")


def build_docs_tree(base_dir, max_depth, _rel=Path("."), _depth=1):
    """Return nested dir/file nodes for markdown docs, dirs before files.

    Directories without any markdown below them are dropped. Walking stops at
    ``max_depth`` directory levels.
    """
    base_dir = Path(base_dir)
    current = base_dir / _rel
    try:
        entries = sorted(current.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
    except OSError:
        return []

    nodes = []
    for entry in entries:
        if _is_hidden(entry):
            continue
        rel_path = (_rel / entry.name).as_posix()
        if entry.is_dir():
            if _depth >= max_depth:
                continue
            children = build_docs_tree(base_dir, max_depth, _rel / entry.name, _depth + 1)
            if not children:
                continue
            nodes.append({"name": entry.name, "path": rel_path, "type": "dir", "children": children})
        elif entry.is_file() and entry.suffix.lower() in DOC_SUFFIXES:
            nodes.append({"name": entry.name, "path": rel_path, "type": "file"})
    return nodes


def read_doc_text(path):
    """Read a markdown document, or return ``None`` when unreadable."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
