"""Slug and title helpers shared by the renderer and the assembler."""
import hashlib
import re
import unicodedata

SMALL_WORDS = {
    'a', 'an', 'and', 'as', 'at', 'but', 'by', 'en', 'for', 'if', 'in', 'nor',
    'of', 'on', 'or', 'per', 'the', 'to', 'v', 'v.', 'via', 'vs', 'vs.',
}


def slugify_tag(tag, separator='-'):
    """Convert tag to a URL and filesystem safe ASCII slug"""
    normalized = unicodedata.normalize('NFKD', str(tag).lower().strip())
    ascii_text = normalized.encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^a-z0-9]+', separator, ascii_text).strip(separator)
    # Tags written entirely in non-latin scripts have no ASCII left
    if not slug:
        slug = hashlib.md5(str(tag).encode('utf-8')).hexdigest()[:8]
    return slug


def _capitalize(word):
    # Leave words with deliberate inner capitals (iPhone, macOS) alone
    if any(c.isupper() for c in word[1:]):
        return word
    for i, c in enumerate(word):
        if c.isalpha():
            return word[:i] + c.upper() + word[i + 1:]
    return word


def titlecase(text):
    """Title-case text, keeping short connecting words lower-case mid-title"""
    words = text.split(' ')
    last = len(words) - 1
    result = []
    for i, word in enumerate(words):
        if 0 < i < last and word.lower() in SMALL_WORDS:
            result.append(word.lower())
        else:
            result.append(_capitalize(word))
    return ' '.join(result)
