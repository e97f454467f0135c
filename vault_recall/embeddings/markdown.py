"""
Markdown preprocessing for note indexing.

Turns a raw markdown note into plain text that is worth tokenizing:
- Title (file name) repeated 3x ahead of the body for extra weight
- YAML frontmatter removed
- Wiki links and markdown links reduced to their visible text
- Heading, emphasis, blockquote and list markup removed
"""

import re
from pathlib import PurePosixPath

TITLE_WEIGHT = 3

_FRONTMATTER = re.compile(r'^---[\s\S]*?---\n?')
_WIKILINK = re.compile(r'\[\[([^\]|]+)(?:\|([^\]]+))?\]\]')
_MD_LINK = re.compile(r'\[([^\]]+)\]\([^)]+\)')
_HEADER = re.compile(r'^#{1,6}\s+', re.MULTILINE)
_EMPHASIS = re.compile(r'[*_~`]')
_BLOCKQUOTE = re.compile(r'^>\s+', re.MULTILINE)
_BULLET = re.compile(r'^[-*+]\s+', re.MULTILINE)
_NUMBERED = re.compile(r'^\d+\.\s+', re.MULTILINE)


def note_title(note_id: str) -> str:
    """Human title of a note: file stem with - and _ turned into spaces"""
    return re.sub(r'[-_]', ' ', PurePosixPath(note_id).stem)


def strip_frontmatter(text: str) -> str:
    return _FRONTMATTER.sub('', text, count=1)


def indexable_content(note_id: str, text: str) -> str:
    """
    Build the text that gets indexed for a note.

    Args:
        note_id: Vault-relative note path (e.g. "ideas/spaced-repetition.md")
        text: Raw markdown content

    Returns:
        Title (weighted) followed by the body without markup

    Example:
        >>> indexable_content("go-notes.md", "# Go\\nSee [[Channels|chans]]")
        'go notes go notes go notes Go\\nSee chans'
    """
    title = note_title(note_id)

    body = strip_frontmatter(text or '')
    body = _WIKILINK.sub(lambda m: m.group(2) or m.group(1), body)
    body = _MD_LINK.sub(r'\1', body)

    # Order matters: list markers use * which the emphasis pass would eat
    body = _HEADER.sub('', body)
    body = _BULLET.sub('', body)
    body = _NUMBERED.sub('', body)
    body = _BLOCKQUOTE.sub('', body)
    body = _EMPHASIS.sub('', body)

    return ' '.join([title] * TITLE_WEIGHT + [body])


def snippet(text: str, max_length: int = 120) -> str:
    """First non-empty body line, truncated for previews"""
    body = strip_frontmatter(text or '').strip()
    body = _HEADER.sub('', body)

    first_line = next((line.strip() for line in body.split('\n') if line.strip()), '')
    if len(first_line) <= max_length:
        return first_line
    return first_line[:max_length] + '…'
