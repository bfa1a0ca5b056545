"""Parsing of model responses into a typed patch description.

Two output shapes are accepted, never mixed:

- a single fenced ``diff`` block holding a unified diff;
- one or more full-file blocks::

    === FILE: path/to/file.js ===
    <complete new content>
    === END ===
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Union

from mender.errors import ParseError

_DIFF_FENCE = re.compile(r"```diff[ \t]*\n(.*?)```", re.DOTALL)
_FILE_START = re.compile(r"^===\s*FILE:\s*(?P<path>.+?)\s*===\s*$")
_FILE_END = re.compile(r"^===\s*END\s*===\s*$")
_INNER_FENCE = re.compile(r"^```[^\n]*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


@dataclass(frozen=True)
class FileBlock:
    path: str
    content: str


@dataclass(frozen=True)
class DiffBlock:
    text: str


ParsedOutput = Union[DiffBlock, List[FileBlock]]


def _strip_inner_fence(content: str) -> str:
    """Models sometimes wrap a file block body in a code fence; drop it."""
    m = _INNER_FENCE.match(content.strip("\n"))
    return m.group("body") if m else content


def _parse_file_blocks(raw: str) -> List[FileBlock]:
    blocks: List[FileBlock] = []
    current_path = None
    buf: List[str] = []
    for line in raw.splitlines():
        start = _FILE_START.match(line)
        if start:
            if current_path is not None:
                raise ParseError(f"FILE block for {current_path} is not terminated by === END ===", raw)
            current_path = start.group("path").strip()
            buf = []
            continue
        if _FILE_END.match(line):
            if current_path is None:
                raise ParseError("=== END === without a matching FILE block", raw)
            content = _strip_inner_fence("\n".join(buf))
            if not content.endswith("\n"):
                content += "\n"
            blocks.append(FileBlock(path=current_path, content=content))
            current_path = None
            continue
        if current_path is not None:
            buf.append(line)
    if current_path is not None:
        raise ParseError(f"FILE block for {current_path} is not terminated by === END ===", raw)
    return blocks


def parse_model_output(raw: str) -> ParsedOutput:
    """Return a ``DiffBlock`` or a list of ``FileBlock``.

    Raises:
        ParseError: zero matches, both shapes present, more than one diff
            block, or an unterminated file block. The raw response is kept
            on the exception.
    """
    raw = raw or ""
    diffs = _DIFF_FENCE.findall(raw)
    has_file_marker = any(_FILE_START.match(line) for line in raw.splitlines())

    if diffs and has_file_marker:
        raise ParseError("Response mixes a diff block with FILE blocks", raw)
    if len(diffs) > 1:
        raise ParseError(f"Response contains {len(diffs)} diff blocks; expected exactly one", raw)
    if diffs:
        text = diffs[0]
        if not text.strip():
            raise ParseError("Diff block is empty", raw)
        return DiffBlock(text=text)

    blocks = _parse_file_blocks(raw)
    if not blocks:
        raise ParseError("Response contains neither a diff block nor FILE blocks", raw)
    return blocks
