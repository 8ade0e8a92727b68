"""
Extraction of a single runnable command line from a raw model reply.

Models rarely follow "output only the command" to the letter. A reply may
carry a reasoning trace, markdown fences, a leading explanation or a trailing
remark, in any order. `sanitize_response` peels those layers off and picks the
one line that looks like the command.
"""

import re
from typing import List, Optional, Pattern

from loguru import logger


THINK_BLOCK_PATTERN = re.compile(
    r"<\s*think\b[^>]*>.*?<\s*/\s*think\s*>", re.IGNORECASE | re.DOTALL
)

# The language tag on the opening fence line is discarded.
CODE_BLOCK_PATTERN = re.compile(r"```(?:[^\n]*)\n(.*?)```", re.DOTALL)

SENTENCE_PATTERN = re.compile(r"^[A-Z].*[.?!]$", re.DOTALL)
PROSE_WORDS_PATTERN = re.compile(
    r"\b(user|want|should|shouldn't|think|explain|error|note)\b", re.IGNORECASE
)

MAX_COMMAND_LENGTH = 2000


def strip_reasoning(content: str) -> str:
    """Removes every closed <think>...</think> block, tags included."""
    return THINK_BLOCK_PATTERN.sub("", content)


def last_matched(pattern: Pattern, content: str) -> Optional[str]:
    """
    Returns the first captured group of the last match of `pattern` in
    `content`, or None when there is no match at all.
    """
    groups = [match.group(1) for match in pattern.finditer(content)]
    if not groups:
        return None
    return groups[-1]


def looks_like_sentence(line: str) -> bool:
    return bool(SENTENCE_PATTERN.match(line)) or bool(
        PROSE_WORDS_PATTERN.search(line)
    )


def find_last_command(lines: List[str]) -> str:
    """
    Scans `lines` backwards and returns the first one that reads like a
    command rather than prose. Falls back to the last line when every line
    looks like a sentence.
    """
    if not lines:
        return ""

    for line in reversed(lines):
        if not looks_like_sentence(line) and len(line) <= MAX_COMMAND_LENGTH:
            return line.strip()

    return lines[-1].strip()


def sanitize_response(content: str) -> str:
    if not content:
        return ""

    stripped_content = strip_reasoning(content)

    # An empty last block counts as no block, same as the backtick fallback.
    stripped_content = last_matched(
        CODE_BLOCK_PATTERN, stripped_content
    ) or stripped_content.replace("`", "")

    lines = [line.strip() for line in re.split(r"\r?\n", stripped_content)]
    lines = [line for line in lines if line]
    if not lines:
        return ""

    command = find_last_command(lines)
    logger.debug("Selected command line out of {} candidate(s): {!r}", len(lines), command)
    return command
