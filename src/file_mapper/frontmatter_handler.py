"""YAML frontmatter generation and parsing for mirrored markdown files.

Every mirrored document starts with a frontmatter block compatible with
static site generators (Hexo, Hugo):

    ---
    title: Storage design
    date: 2024-03-01T10:00:00+08:00
    updated: 2024-03-05T18:30:00+08:00
    categories:
    - Backend
    tags:
    - Guides
    - Backend
    id: doxcnABC123
    ---
"""

import re
from datetime import datetime, tzinfo
from typing import List, Optional, Tuple
import yaml

from .errors import FrontmatterError


class FrontmatterHandler:
    """Handles YAML frontmatter operations for markdown files."""

    # Regex pattern to match YAML frontmatter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---\s*\n(.*?)\n---\s*\n',
        re.DOTALL
    )

    @staticmethod
    def format_timestamp(value: Optional[datetime], tz: tzinfo) -> str:
        """Render a timestamp as ISO-8601 in the given zone (now if missing)."""
        if value is None:
            value = datetime.now(tz)
        elif value.tzinfo is None:
            value = value.replace(tzinfo=tz)
        return value.astimezone(tz).replace(microsecond=0).isoformat()

    @classmethod
    def generate(
        cls,
        title: str,
        doc_id: str,
        body: str,
        tz: tzinfo,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> str:
        """Generate markdown content with YAML frontmatter.

        Args:
            title: Document title
            doc_id: Stable document id
            body: Rendered markdown body
            tz: Zone used to render timestamps
            created_at: Creation time (current time when unknown)
            updated_at: Last modification time (current time when unknown)
            category: Single category (must already carry the default label)
            tags: Tags, omitted from the block when empty

        Returns:
            Full markdown content with frontmatter
        """
        frontmatter = {
            'title': title,
            'date': cls.format_timestamp(created_at, tz),
            'updated': cls.format_timestamp(updated_at, tz),
            'categories': [category] if category else [],
        }
        clean_tags = [tag for tag in (tags or []) if tag.strip()]
        if clean_tags:
            frontmatter['tags'] = clean_tags
        frontmatter['id'] = doc_id

        yaml_str = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{yaml_str}---\n\n{body}"

    @classmethod
    def extract_frontmatter_and_content(cls, content: str) -> Tuple[dict, str]:
        """Extract frontmatter dict and content separately.

        Args:
            content: Full markdown content including frontmatter

        Returns:
            Tuple of (frontmatter_dict, markdown_content).
            Returns ({}, content) if no frontmatter found.

        Raises:
            FrontmatterError: If the block is not valid YAML or not a mapping
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontmatterError("<unknown>", f"Invalid YAML syntax: {str(e)}")

        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                "<unknown>",
                f"Frontmatter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        return frontmatter, content[match.end():]
