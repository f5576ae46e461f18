"""Derive frontmatter tags and category from a document's relative path."""

from typing import List, Optional

ROOT_PATH = "."


def _segments(path: str) -> List[str]:
    return [part for part in (path or '').split('/') if part and part != ROOT_PATH]


class MetadataDeriver:
    """Turns a hierarchical path such as "Guides/Backend/Storage" into metadata.

    Examples:
        >>> MetadataDeriver.tags_from_path("a/b/c")
        ['a', 'b', 'c']
        >>> MetadataDeriver.category_from_path("a/b/c", -1)
        'c'
    """

    @staticmethod
    def tags_from_path(path: str, mode: str = "all") -> List[str]:
        """One tag per path segment, outermost first.

        Args:
            path: Relative path using "/" separators ("." is the root)
            mode: "all" keeps every segment, "last" only the innermost one

        Returns:
            List of tags (empty for the root)
        """
        segments = _segments(path)
        if mode == "last":
            return segments[-1:]
        return segments

    @staticmethod
    def category_from_path(path: str, level: int) -> Optional[str]:
        """Pick one path segment as the category.

        Positive levels count from the outermost segment (1 is the first),
        negative levels from the innermost (-1 is the last). Levels beyond
        either end clamp to that end.

        Returns:
            The selected segment, or None for level 0 or an empty path
        """
        segments = _segments(path)
        if level == 0 or not segments:
            return None
        if level > 0:
            return segments[min(level, len(segments)) - 1]
        return segments[max(len(segments) + level, 0)]
