"""Feishu wiki client library.

This package wraps the Feishu Open API endpoints needed to mirror a wiki:
credential loading, a dual-ceiling rate limiter shared by every call, retry
on server-side rate limiting, and a typed exception hierarchy.
"""

from .api_wrapper import FeishuAPI
from .auth import Authenticator, Credentials
from .errors import (
    SyncError,
    ValidationError,
    QuotaWaitCancelled,
    WikiError,
    InvalidCredentialsError,
    NodeNotFoundError,
    APIUnreachableError,
    APIAccessError,
    PermissionDeniedError,
)
from .models import Node, NodeKind, ChildPage, DocumentMeta, DocumentContent, DocumentTimes, Asset
from .rate_limiter import RateLimiter
from .url_parser import parse_document_url, parse_wiki_url

__all__ = [
    'FeishuAPI',
    'Authenticator',
    'Credentials',
    'SyncError',
    'ValidationError',
    'QuotaWaitCancelled',
    'WikiError',
    'InvalidCredentialsError',
    'NodeNotFoundError',
    'APIUnreachableError',
    'APIAccessError',
    'PermissionDeniedError',
    'Node',
    'NodeKind',
    'ChildPage',
    'DocumentMeta',
    'DocumentContent',
    'DocumentTimes',
    'Asset',
    'RateLimiter',
    'parse_document_url',
    'parse_wiki_url',
]
