"""Atomic application of unified diffs to the workspace.

Every hunk of every file is matched in memory before anything is returned;
the caller writes only when the whole diff applies. A hunk is tried at its
stated position (shifted by earlier hunks) first, then at the single place
in the file where its context matches. Ambiguous or missing context is an
``ApplyError``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from mender.errors import ApplyError, ParseError
from mender.models import FileChange
from mender.utils.logger import log_debug
from mender.workspace import Workspace

_HUNK_HEADER = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)


@dataclass
class HunkLine:
    tag: str  # " ", "-" or "+"
    text: str
    eol: bool = True


@dataclass
class Hunk:
    old_start: int
    lines: List[HunkLine] = field(default_factory=list)

    @property
    def old_lines(self) -> List[str]:
        return [l.text for l in self.lines if l.tag in (" ", "-")]


@dataclass
class FilePatch:
    old_path: Optional[str]
    new_path: Optional[str]
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def path(self) -> Optional[str]:
        return self.new_path or self.old_path


def _normalise_diff_path(raw: str) -> Optional[str]:
    path = raw.strip().split("\t", 1)[0].strip()
    if path == "/dev/null":
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path


def parse_unified_diff(text: str) -> List[FilePatch]:
    """Split unified diff text into per-file patches."""
    patches: List[FilePatch] = []
    current: Optional[FilePatch] = None
    hunk: Optional[Hunk] = None
    lines = text.rstrip("\n").split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("--- ") and i + 1 < len(lines) and lines[i + 1].startswith("+++ "):
            current = FilePatch(_normalise_diff_path(line[4:]), _normalise_diff_path(lines[i + 1][4:]))
            patches.append(current)
            hunk = None
            i += 2
            continue
        header = _HUNK_HEADER.match(line)
        if header:
            if current is None:
                raise ParseError("Hunk found before any file header", text)
            hunk = Hunk(old_start=int(header.group("old_start")))
            current.hunks.append(hunk)
        elif line.startswith(("diff --git", "index ", "new file mode", "deleted file mode", "similarity index")):
            hunk = None
        elif hunk is not None:
            if line.startswith("\\"):
                if hunk.lines:
                    hunk.lines[-1].eol = False
            elif line[:1] in (" ", "-", "+"):
                hunk.lines.append(HunkLine(line[0], line[1:]))
            elif line == "":
                hunk.lines.append(HunkLine(" ", ""))
            else:
                raise ParseError(f"Unexpected line inside hunk: {line!r}", text)
        i += 1

    if not patches:
        raise ParseError("Diff contains no file headers", text)
    for patch in patches:
        if not patch.hunks:
            raise ParseError(f"Diff for {patch.path} has no hunks", text)
    return patches


def _split_keepends(content: str) -> List[str]:
    return content.splitlines(keepends=True)


def _bare(line: str) -> str:
    return line.rstrip("\r\n")


def _matches_at(lines: List[str], block: List[str], pos: int) -> bool:
    if pos < 0 or pos + len(block) > len(lines):
        return False
    return all(_bare(lines[pos + j]) == block[j] for j in range(len(block)))


def _locate(lines: List[str], block: List[str], expected: int, floor: int) -> Optional[int]:
    if _matches_at(lines, block, expected) and expected >= floor:
        return expected
    candidates = [p for p in range(floor, len(lines) - len(block) + 1) if _matches_at(lines, block, p)]
    if len(candidates) == 1:
        return candidates[0]
    return None


def apply_hunks(content: str, hunks: List[Hunk], path: str) -> str:
    """Apply hunks to ``content`` in memory, keeping the file's line endings."""
    newline = "\r\n" if "\r\n" in content else "\n"
    lines = _split_keepends(content)
    offset = 0
    floor = 0
    for n, hunk in enumerate(hunks, start=1):
        block = hunk.old_lines
        if not block:
            pos = max(hunk.old_start + offset, floor)
            if pos > len(lines):
                raise ApplyError(f"Hunk {n} for {path} inserts past the end of the file", path=path)
        else:
            expected = hunk.old_start - 1 + offset
            pos = _locate(lines, block, expected, floor)
            if pos is None:
                raise ApplyError(f"Hunk {n} for {path} does not match the current file", path=path)

        replacement: List[str] = []
        cursor = pos
        for hl in hunk.lines:
            if hl.tag == " ":
                replacement.append(lines[cursor])
                cursor += 1
            elif hl.tag == "-":
                cursor += 1
            else:
                replacement.append(hl.text + (newline if hl.eol else ""))
        lines[pos:pos + len(block)] = replacement
        # a former last line without newline needs one once text follows it
        for k in range(len(lines) - 1):
            if not lines[k].endswith("\n"):
                lines[k] += newline
        log_debug("Hunk applied", path=path, hunk=n, position=pos + 1)
        offset += len(replacement) - len(block)
        floor = pos + len(replacement)
    return "".join(lines)


def apply_unified_diff(workspace: Workspace, text: str) -> Tuple[FileChange, ...]:
    """Compute the new content of every file touched by ``text``.

    Nothing is written here. Raises ``ApplyError`` when a target is missing,
    is created or deleted by the diff, or a hunk does not match.
    """
    changes: List[FileChange] = []
    seen = set()
    for patch in parse_unified_diff(text):
        if patch.old_path is None or patch.new_path is None:
            raise ApplyError(f"Diff creates or deletes {patch.path}; only existing files may be edited",
                             path=patch.path)
        if patch.old_path != patch.new_path:
            raise ApplyError(f"Diff renames {patch.old_path} to {patch.new_path}", path=patch.path)
        path = patch.path
        if path in seen:
            raise ApplyError(f"Diff touches {path} more than once", path=path)
        seen.add(path)
        if not workspace.exists(path):
            raise ApplyError(f"Diff targets unknown file {path}", path=path)
        original = workspace.read(path)
        changes.append(FileChange(path=path, content=apply_hunks(original, patch.hunks, path)))
    return tuple(changes)
