"""Markdown converter for Feishu docx documents.

This module renders the block tree of a docx document (as returned by the
block listing endpoint) into markdown. Image blocks are rendered as
`![](<token>)` placeholders and their tokens collected in order so the asset
pipeline can later swap each token for its final link.
"""

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from src.models.conversion_result import ConversionResult
from src.wiki_client.models import DocumentContent

logger = logging.getLogger(__name__)

PAGE = 1
TEXT = 2
HEADING_TYPES = {3 + level: level + 1 for level in range(9)}  # heading1..heading9
BULLET = 12
ORDERED = 13
CODE = 14
QUOTE = 15
TODO = 17
CALLOUT = 19
DIVIDER = 22
IMAGE = 27
TABLE = 31
TABLE_CELL = 32
QUOTE_CONTAINER = 34

# Block type → key of the payload holding its text elements
_TEXT_KEYS = {
    PAGE: 'page',
    TEXT: 'text',
    BULLET: 'bullet',
    ORDERED: 'ordered',
    CODE: 'code',
    QUOTE: 'quote',
    TODO: 'todo',
    **{block_type: f"heading{level}" for block_type, level in HEADING_TYPES.items()},
}

# Subset of the docx code language enum
CODE_LANGUAGES = {
    1: '', 7: 'bash', 8: 'csharp', 9: 'cpp', 10: 'c', 12: 'css', 18: 'dockerfile',
    22: 'go', 24: 'html', 26: 'http', 28: 'json', 29: 'java', 30: 'javascript',
    32: 'kotlin', 36: 'lua', 38: 'makefile', 39: 'markdown', 40: 'nginx',
    43: 'php', 44: 'perl', 46: 'powershell', 48: 'protobuf', 49: 'python',
    50: 'r', 52: 'ruby', 53: 'rust', 55: 'scss', 56: 'sql', 57: 'scala',
    60: 'shell', 61: 'swift', 63: 'typescript', 66: 'xml', 67: 'yaml',
}

INDENT = "    "


class MarkdownConverter:
    """Converts docx block trees to markdown.

    Example:
        >>> converter = MarkdownConverter()
        >>> result = converter.convert(api.fetch_content("doxcnABC"))
        >>> result.image_tokens
        ['boxcnImg1', 'boxcnImg2']
    """

    def convert(self, content: DocumentContent) -> ConversionResult:
        """Render a document to markdown.

        Args:
            content: Document and its blocks as fetched from the API

        Returns:
            ConversionResult with markdown, ordered image tokens and warnings
        """
        blocks = {block['block_id']: block for block in content.blocks if 'block_id' in block}
        result = ConversionResult(markdown="")
        if not content.blocks:
            return result

        root = next((b for b in content.blocks if b.get('block_type') == PAGE), content.blocks[0])
        lines = self._render_children(root, blocks, result, depth=0)
        result.markdown = "\n\n".join(chunk for chunk in lines if chunk) + "\n"
        return result

    def _render_children(
        self,
        block: Dict[str, Any],
        blocks: Dict[str, Dict[str, Any]],
        result: ConversionResult,
        depth: int,
    ) -> List[str]:
        chunks = []
        ordinal = 0
        for child_id in block.get('children') or []:
            child = blocks.get(child_id)
            if child is None:
                result.warnings.append(f"Missing block {child_id}")
                continue
            ordinal = ordinal + 1 if child.get('block_type') == ORDERED else 0
            chunks.append(self._render_block(child, blocks, result, depth, ordinal))
        return chunks

    def _render_block(
        self,
        block: Dict[str, Any],
        blocks: Dict[str, Dict[str, Any]],
        result: ConversionResult,
        depth: int,
        ordinal: int = 0,
    ) -> str:
        block_type = block.get('block_type')
        text = self._render_text(block)

        if block_type == TEXT:
            return text
        if block_type in HEADING_TYPES:
            level = min(HEADING_TYPES[block_type], 6)
            return f"{'#' * level} {text}"
        if block_type in (BULLET, ORDERED, TODO):
            if block_type == BULLET:
                marker = "-"
            elif block_type == ORDERED:
                marker = f"{ordinal}."
            else:
                done = (block.get('todo', {}).get('style') or {}).get('done', False)
                marker = "- [x]" if done else "- [ ]"
            item = f"{marker} {text}"
            nested = self._render_children(block, blocks, result, depth + 1)
            if nested:
                item += "\n" + "\n".join(_indent(chunk) for chunk in nested)
            return item
        if block_type == CODE:
            style = block.get('code', {}).get('style') or {}
            language = CODE_LANGUAGES.get(style.get('language', 1), '')
            return f"```{language}\n{self._render_text(block, plain=True)}\n```"
        if block_type == QUOTE:
            return _quote(text)
        if block_type in (QUOTE_CONTAINER, CALLOUT):
            inner = "\n\n".join(self._render_children(block, blocks, result, depth))
            return _quote(inner)
        if block_type == DIVIDER:
            return "---"
        if block_type == IMAGE:
            token = block.get('image', {}).get('token', '')
            if not token:
                return ""
            result.image_tokens.append(token)
            return f"![]({token})"
        if block_type == TABLE:
            return self._render_table(block, blocks, result, depth)

        result.warnings.append(f"Unsupported block type {block_type} ({block.get('block_id')})")
        logger.debug(f"Rendering children of unsupported block type {block_type}")
        return "\n\n".join(self._render_children(block, blocks, result, depth))

    def _render_table(
        self,
        block: Dict[str, Any],
        blocks: Dict[str, Dict[str, Any]],
        result: ConversionResult,
        depth: int,
    ) -> str:
        table = block.get('table', {})
        columns = (table.get('property') or {}).get('column_size', 0)
        cells = table.get('cells') or block.get('children') or []
        if not columns or not cells:
            return ""

        rendered = []
        for cell_id in cells:
            cell = blocks.get(cell_id, {})
            parts = self._render_children(cell, blocks, result, depth)
            rendered.append("<br>".join(p.replace("\n", "<br>") for p in parts if p).replace("|", "\\|"))

        rows = [rendered[i:i + columns] for i in range(0, len(rendered), columns)]
        lines = ["| " + " | ".join(rows[0]) + " |", "|" + " --- |" * columns]
        lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
        return "\n".join(lines)

    def _render_text(self, block: Dict[str, Any], plain: bool = False) -> str:
        key = _TEXT_KEYS.get(block.get('block_type'))
        if key is None:
            return ""
        elements = (block.get(key) or {}).get('elements') or []
        return "".join(self._render_element(element, plain) for element in elements)

    @staticmethod
    def _render_element(element: Dict[str, Any], plain: bool) -> str:
        if 'text_run' in element:
            run = element['text_run']
            content = run.get('content', '')
            if plain or not content.strip():
                return content
            style = run.get('text_element_style') or {}
            if style.get('inline_code'):
                content = f"`{content}`"
            if style.get('bold'):
                content = f"**{content}**"
            if style.get('italic'):
                content = f"*{content}*"
            if style.get('strikethrough'):
                content = f"~~{content}~~"
            link = _link_url(style.get('link'))
            if link:
                content = f"[{content}]({link})"
            return content
        if 'mention_doc' in element:
            mention = element['mention_doc']
            title = mention.get('title', '')
            url = _link_url(mention)
            return f"[{title}]({url})" if url and not plain else title
        if 'equation' in element:
            equation = element['equation'].get('content', '').strip()
            return equation if plain else f"${equation}$"
        return ""


def _link_url(link: Optional[Dict[str, Any]]) -> str:
    if not link or not link.get('url'):
        return ""
    return urllib.parse.unquote(link['url'])


def _indent(chunk: str) -> str:
    return "\n".join(INDENT + line if line else line for line in chunk.split("\n"))


def _quote(text: str) -> str:
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))
