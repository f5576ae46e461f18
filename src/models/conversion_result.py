"""Conversion result data model."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ConversionResult:
    """Result of docx blocks to markdown conversion.

    Attributes:
        markdown: Converted markdown content
        image_tokens: Image tokens in order of appearance (may repeat)
        warnings: List of warnings about unsupported blocks encountered
    """
    markdown: str
    image_tokens: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
