"""Filesafe conversion of wiki titles to path segments.

Characters that are invalid on common file systems are replaced by visually
similar safe equivalents instead of being dropped, so titles stay readable.
"""

# Characters replaced by a hyphen
_HYPHENATED = '/\\:|'

_LOOKALIKES = str.maketrans({
    '*': '★',
    '?': '？',
    '"': "'",
    '<': '《',
    '>': '》',
    **{char: '-' for char in _HYPHENATED},
})

UNTITLED = "untitled"


class FilesafeConverter:
    """Converts wiki titles to filesafe names with case preservation.

    Conversion rules:
    - Path separators, colons and pipes (/, \\, :, |) → hyphens (-)
    - * → ★, ? → ？, " → ', < → 《, > → 》
    - Leading/trailing whitespace → trimmed
    - Empty names and the special names "." and ".." → "untitled"
    - Case and every other character are preserved

    Distinct titles may map to the same name (e.g. "a/b" and "a:b"); callers
    accept that collision and the last writer wins.

    Examples:
        - "Q&A: Setup" → "Q&A- Setup"
        - "What is REST?" → "What is REST？"
        - "<Draft>" → "《Draft》"
    """

    @staticmethod
    def sanitize(name: str) -> str:
        """Convert a display name to a single safe path segment.

        Args:
            name: Node or document title

        Returns:
            A non-empty segment containing no path separator

        Examples:
            >>> FilesafeConverter.sanitize("Client/Server")
            'Client-Server'
            >>> FilesafeConverter.sanitize("  ")
            'untitled'
        """
        segment = (name or '').translate(_LOOKALIKES).strip()
        if segment in ('', '.', '..'):
            return UNTITLED
        return segment

    @staticmethod
    def title_to_filename(title: str, extension: str = ".md") -> str:
        """Convert a document title to a filesafe filename.

        Examples:
            >>> FilesafeConverter.title_to_filename("Release notes: 2.0")
            'Release notes- 2.0.md'
        """
        return f"{FilesafeConverter.sanitize(title)}{extension}"
