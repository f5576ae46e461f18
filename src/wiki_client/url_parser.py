"""Validation of wiki URLs, document URLs and node tokens given on the command line."""

import re
import urllib.parse
from typing import Tuple

from .errors import ValidationError

# Node tokens are alphanumeric (e.g. wikcnKQ1k3p3u2vtwOPpKe9lSgE)
TOKEN_PATTERN = re.compile(r'^[A-Za-z0-9]{8,64}$')

WIKI_KIND = "wiki"
DOCX_KIND = "docx"


def parse_wiki_url(value: str) -> str:
    """Extract the node token from a wiki URL, or validate a bare token.

    Accepted forms:
        https://example.feishu.cn/wiki/wikcnKQ1k3p3u2vtwOPpKe9lSgE
        https://example.larksuite.com/wiki/wikcnKQ1k3p3u2vtwOPpKe9lSgE?from=home
        wikcnKQ1k3p3u2vtwOPpKe9lSgE

    Raises:
        ValidationError: If the value is neither a wiki URL nor a token
    """
    candidate = (value or '').strip()
    if not candidate:
        raise ValidationError(value, "a wiki URL or node token is required")

    if '://' in candidate:
        parsed = urllib.parse.urlparse(candidate)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValidationError(value, "URL must use http or https")
        segments = [part for part in parsed.path.split('/') if part]
        if len(segments) < 2 or segments[-2] != 'wiki':
            raise ValidationError(value, "expected a URL of the form https://<host>/wiki/<token>")
        candidate = segments[-1]

    if not TOKEN_PATTERN.match(candidate):
        raise ValidationError(value, "node token must be 8-64 alphanumeric characters")
    return candidate


def parse_document_url(value: str) -> Tuple[str, str]:
    """Classify a command-line root as a wiki node or a standalone document.

    Accepted forms:
        https://example.feishu.cn/docx/doxcnAbCdEf123456   -> ("docx", token)
        https://example.feishu.cn/wiki/wikcnAbCdEf123456   -> ("wiki", token)
        wikcnAbCdEf123456                                   -> ("wiki", token)

    Raises:
        ValidationError: If the value matches none of these forms
    """
    candidate = (value or '').strip()
    if '://' in candidate:
        parsed = urllib.parse.urlparse(candidate)
        segments = [part for part in parsed.path.split('/') if part]
        if len(segments) >= 2 and segments[-2] == DOCX_KIND:
            if parsed.scheme not in ('http', 'https') or not parsed.netloc:
                raise ValidationError(value, "URL must use http or https")
            if not TOKEN_PATTERN.match(segments[-1]):
                raise ValidationError(value, "document token must be 8-64 alphanumeric characters")
            return DOCX_KIND, segments[-1]
    return WIKI_KIND, parse_wiki_url(value)
