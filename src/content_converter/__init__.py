"""Content converter library for docx blocks to markdown."""

from .markdown_converter import MarkdownConverter

__all__ = ['MarkdownConverter']
