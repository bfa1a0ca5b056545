"""The checked-out repository the agent operates on.

All file access by scaffolder and strategies goes through ``Workspace`` so
that relative paths resolve against one root and can never escape it.
"""
from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import List, Optional, Union

from mender.errors import ApplyError


class Workspace:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"Workspace({str(self.root)!r})"

    def resolve(self, rel_path: str) -> Path:
        """Map a workspace-relative path to an absolute one.

        Raises ``ApplyError`` for absolute paths, ``..`` traversal, anything
        under ``.git`` or any path that lands outside the root.
        """
        cleaned = (rel_path or "").strip().replace("\\", "/")
        if not cleaned:
            raise ApplyError("Empty path", path=rel_path)
        posix = PurePosixPath(cleaned)
        if posix.is_absolute():
            raise ApplyError(f"Absolute paths are not allowed: {rel_path}", path=rel_path)
        if ".." in posix.parts:
            raise ApplyError(f"Parent directory traversal is not allowed: {rel_path}", path=rel_path)
        if ".git" in posix.parts:
            raise ApplyError(f"Refusing to touch .git internals: {rel_path}", path=rel_path)
        target = (self.root / Path(*posix.parts)).resolve()
        if target != self.root and self.root not in target.parents:
            raise ApplyError(f"Path escapes the workspace: {rel_path}", path=rel_path)
        return target

    def relative(self, path: Union[str, Path]) -> str:
        return Path(path).resolve().relative_to(self.root).as_posix()

    def exists(self, rel_path: str) -> bool:
        return self.resolve(rel_path).is_file()

    def read(self, rel_path: str) -> str:
        # newline="" keeps CRLF endings intact
        with self.resolve(rel_path).open("r", encoding="utf-8", newline="") as f:
            return f.read()

    def read_optional(self, rel_path: str) -> Optional[str]:
        return self.read(rel_path) if self.exists(rel_path) else None

    def write(self, rel_path: str, content: str) -> None:
        target = self.resolve(rel_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="") as f:
            f.write(content)

    def glob(self, pattern: str) -> List[str]:
        """Relative paths of files matching ``pattern``, sorted, ``.git`` and ``node_modules`` excluded."""
        matches = []
        for p in sorted(self.root.glob(pattern)):
            if not p.is_file():
                continue
            rel = p.relative_to(self.root)
            if ".git" in rel.parts or "node_modules" in rel.parts:
                continue
            matches.append(rel.as_posix())
        return matches
