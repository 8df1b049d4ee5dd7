"""
Clean-up applied to generated text before it is stored and sent.
"""
import re

# Telegram rejects messages longer than this
MAX_RESPONSE_CHARS = 4096
TRUNCATION_SUFFIX = "…"

_CITATION_PATTERNS = (
    # Grok-style linked footnotes: [[1]](https://...)
    re.compile(r"[ \t]*\[\[\d+\]\]\([^)\s]*\)"),
    # Parenthesised markdown source links: ([example.com](https://...))
    re.compile(r"[ \t]*\(\[[^\]\n]+\]\([^)\s]+\)\)"),
    # OpenAI annotation markers: 【3:0†source】
    re.compile(r"[ \t]*【[^】\n]*】"),
)

# Bare numeric footnotes: [1], [2, 3]. Not after an identifier, a closing
# bracket or paren (arr[0], m[0][1], f(x)[2]) and not a markdown link label.
_FOOTNOTE_PATTERN = re.compile(r"[ \t]*(?<![\w\])])\[\d+(?:,\s*\d+)*\](?!\()")


def _strip_once(text: str, footnotes: bool) -> str:
    for pattern in _CITATION_PATTERNS:
        text = pattern.sub("", text)
    if footnotes:
        text = _FOOTNOTE_PATTERN.sub("", text)
    return text


def strip_citations(text: str, footnotes: bool = False) -> str:
    """
    Remove inline citation markup that search-enabled providers insert.

    This is pattern based, not a parser. Text without citations is returned
    unchanged; removal repeats until nothing matches, so applying it twice
    gives the same result as applying it once.

    Args:
        text: Generated reply.
        footnotes: Also drop bare ``[1]`` / ``[2, 3]`` markers. These look
            exactly like list literals, so only pass True when the reply
            came back with search activity.
    """
    cleaned = text
    while True:
        stripped = _strip_once(cleaned, footnotes)
        if stripped == cleaned:
            break
        cleaned = stripped

    if cleaned != text:
        cleaned = cleaned.strip()
    return cleaned


def truncate_response(text: str, limit: int = MAX_RESPONSE_CHARS) -> str:
    """
    Cap text at ``limit`` characters, suffix included.

    The cut is made at the last whitespace before the limit when there is one,
    so words are not split. Output never exceeds ``limit``, which keeps a
    second pass a no-op.
    """
    if len(text) <= limit:
        return text

    budget = limit - len(TRUNCATION_SUFFIX)
    head = text[:budget]
    # only back off to a word boundary if the cut actually lands mid-word
    if not text[budget].isspace():
        boundary = max(head.rfind(" "), head.rfind("\n"), head.rfind("\t"))
        if boundary > 0:
            head = head[:boundary]
    return head.rstrip() + TRUNCATION_SUFFIX


def clean_response(text: str, footnotes: bool = False) -> str:
    """Strip citations, then truncate."""
    return truncate_response(strip_citations(text, footnotes))
