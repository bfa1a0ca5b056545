"""Prompt construction for model-backed steps."""
from __future__ import annotations

from typing import Dict, List

from langchain_core.prompts import ChatPromptTemplate

REPAIR_SYSTEM = (
    "You are a senior engineer fixing a bug in an existing repository so that its test suite passes. "
    "RETURN ONLY ONE of these two output shapes and no other text, explanation or markdown:\n"
    "1. A single fenced code block tagged diff containing a unified diff (--- a/path, +++ b/path, @@ hunks) "
    "against the files shown.\n"
    "2. One or more full-file replacements, each written as\n"
    "=== FILE: relative/path ===\n"
    "<complete new file content>\n"
    "=== END ===\n"
    "Only edit files that appear in the repository snapshot. Never create new files. "
    "Do not weaken or delete tests; fix the implementation."
)

repair_prompt = ChatPromptTemplate.from_messages([
    ("system", REPAIR_SYSTEM),
    (
        "human",
        "Issue #{issue_number}\n{issue_text}\n\n"
        "Most recent test output:\n{test_output}\n\n"
        "Repository snapshot:\n{snapshot}",
    ),
])

SCAFFOLD_SYSTEM = (
    "You write unit tests. Reply with test code only, in a single fenced code block, no prose. "
    "Use the same language, module system and test framework conventions as the source file. "
    "Cover the nominal behaviour of every exported function and at least one boundary case, "
    "and encode the behaviour the issue describes as correct."
)


def scaffold_messages(source_path: str, source_text: str, test_path: str, issue_text: str) -> List[Dict[str, str]]:
    user = (
        f"Source file: {source_path}\n"
        f"Write the test file: {test_path}\n\n"
        f"Issue:\n{issue_text or '<no issue text>'}\n\n"
        f"Source:\n```\n{source_text}\n```"
    )
    return [
        {"role": "system", "content": SCAFFOLD_SYSTEM},
        {"role": "user", "content": user},
    ]
