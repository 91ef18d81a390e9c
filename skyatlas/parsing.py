"""
Structured response parser.

Generative models wrap the JSON they are asked for in prose, markdown
fences, or both. This module finds the first balanced JSON fragment of the
requested kind inside free-form text and decodes it.

It does not repair truncated or malformed JSON: a fragment either parses
as-is or is skipped.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class Shape(Enum):
    """Kind of top-level JSON value to look for."""
    OBJECT = 'object'
    ARRAY = 'array'

    @property
    def delimiters(self) -> tuple:
        return ('{', '}') if self is Shape.OBJECT else ('[', ']')

    @property
    def python_type(self) -> type:
        return dict if self is Shape.OBJECT else list


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of a scan: either Ok(value) or Absent.

    Use ``ParseResult.absent()`` / ``ParseResult.of(value)`` rather than
    the constructor.
    """
    ok: bool
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> 'ParseResult':
        return cls(ok=True, value=value)

    @classmethod
    def absent(cls) -> 'ParseResult':
        return cls(ok=False)


def _balanced_end(text: str, start: int) -> Optional[int]:
    """
    Return the index just past the bracket that closes ``text[start]``.

    Tracks both bracket kinds and skips over string literals, honouring
    backslash escapes. Returns None when the text ends first.
    """
    stack = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in '{[':
            stack.append('}' if ch == '{' else ']')
        elif ch in '}]':
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1

    return None


def extract_json(text: Any, shape: Shape) -> ParseResult:
    """
    Find and decode the first well-formed JSON fragment of ``shape`` in ``text``.

    Every opening delimiter of the requested kind is tried in order; the
    first one whose balanced fragment decodes to the right type wins.
    """
    if not isinstance(text, str) or not text:
        return ParseResult.absent()

    opener, _ = shape.delimiters
    position = text.find(opener)

    while position != -1:
        end = _balanced_end(text, position)
        if end is not None:
            fragment = text[position:end]
            try:
                value = json.loads(fragment)
            except ValueError:
                logger.debug(f'Skipping undecodable {shape.value} fragment at offset {position}')
            else:
                if isinstance(value, shape.python_type):
                    return ParseResult.of(value)
        position = text.find(opener, position + 1)

    return ParseResult.absent()


def parse_structured(text: Any, shape: Shape, fallback: Any = None) -> Any:
    """Decode the first ``shape`` fragment in ``text``, or return ``fallback``. Never raises."""
    result = extract_json(text, shape)
    return result.value if result.ok else fallback
