"""API wrapper for the Feishu Open API (wiki, docx and drive endpoints).

This module implements the remote-store capability used by the mirror on
top of a requests Session. Every call first waits on the shared
RateLimiter, then runs under the 429 retry logic, and failures are
translated into the typed exception hierarchy in one place.
"""

import logging
import re
import threading
import time
import urllib.parse
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from requests.exceptions import Timeout, ConnectionError

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    NodeNotFoundError,
    PermissionDeniedError,
    QuotaWaitCancelled,
)
from .models import ChildPage, Asset, DocumentContent, DocumentMeta, DocumentTimes, Node
from .rate_limiter import RateLimiter
from .retry_logic import _is_rate_limit_error, retry_on_rate_limit

logger = logging.getLogger(__name__)

# Page sizes accepted by the Open API
WIKI_PAGE_SIZE = 50
BLOCK_PAGE_SIZE = 500

# Refresh the tenant token this many seconds before it expires
TOKEN_REFRESH_MARGIN = 300

# Business codes returned with HTTP 200/400 bodies
INVALID_CREDENTIAL_CODES = {10003, 10014, 99991661, 99991663, 99991664, 99991668}
PERMISSION_DENIED_CODES = {131006, 1770032, 99991672, 99991679, 91204}
NOT_FOUND_CODES = {131005, 1770002, 1061004}

WIKI_SCOPE = "wiki:wiki:readonly"
DOCX_SCOPE = "docx:document:readonly"
DRIVE_SCOPE = "drive:drive:readonly"
MEDIA_SCOPE = "drive:media:download"

_FILENAME_PATTERN = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


class FeishuResponseError(Exception):
    """Raw error response from the Open API, before translation."""

    def __init__(self, status_code: int, code: Optional[int], msg: str):
        super().__init__(f"HTTP {status_code}, code {code}: {msg}")
        self.status_code = status_code
        self.code = code
        self.msg = msg


class FeishuAPI:
    """Client for the Feishu Open API with rate limiting and error translation.

    This class provides the operations the mirror needs from the remote wiki:
    1. Listing the children of a wiki node, one page at a time
    2. Fetching document metadata, blocks and timestamps
    3. Downloading embedded media
    4. Translating HTTP and business errors to typed exceptions

    Example:
        >>> api = FeishuAPI(Authenticator(), RateLimiter())
        >>> page = api.list_children("7034502641455497244", "wikcnRoot")
        >>> meta = api.fetch_meta(page.items[0].obj_token)
    """

    def __init__(
        self,
        authenticator: Authenticator,
        rate_limiter: Optional[RateLimiter] = None,
        cancel_event: Optional[threading.Event] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
    ):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator for loading app credentials
            rate_limiter: Limiter shared by every remote call (created if omitted)
            cancel_event: Cancellation context honoured by rate limit waits
            session: Optional requests Session (injectable for tests)
            timeout: Per-request timeout in seconds
        """
        self._authenticator = authenticator
        self._limiter = rate_limiter or RateLimiter()
        self._cancel_event = cancel_event
        self._session = session or requests.Session()
        self._timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    def _base_url(self) -> str:
        return self._authenticator.get_credentials().base_url

    def _sanitize_credentials(self, text: str) -> str:
        """Mask tokens and secrets in error messages before logging them."""
        if not text:
            return text

        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(app_secret|tenant_access_token|token)["\']?\s*[:=]\s*["\']?([^"\'\s&,}]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # Tenant access tokens look like t-g1044ghJ...
        sanitized = re.sub(r'\bt-[A-Za-z0-9_]{8,}\b', '***REDACTED***', sanitized)
        return sanitized

    def _tenant_token(self) -> str:
        """Return a valid tenant access token, fetching a new one when needed.

        Raises:
            InvalidCredentialsError: If the app credentials are rejected
        """
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            creds = self._authenticator.get_credentials()
            self._limiter.wait(cancel_event=self._cancel_event)
            logger.debug("Requesting tenant access token")
            try:
                response = self._session.post(
                    f"{creds.base_url}/open-apis/auth/v3/tenant_access_token/internal",
                    json={'app_id': creds.app_id, 'app_secret': creds.app_secret},
                    timeout=self._timeout,
                )
                body = response.json()
            except (Timeout, ConnectionError):
                raise APIUnreachableError(endpoint=creds.base_url)
            except ValueError:
                raise APIAccessError("Feishu API returned a non-JSON token response")

            if response.status_code >= 400 or body.get('code', 0) != 0:
                raise InvalidCredentialsError(app_id=creds.app_id, endpoint=creds.base_url)

            self._token = body['tenant_access_token']
            expire = int(body.get('expire', 7200))
            self._token_expires_at = time.monotonic() + max(expire - TOKEN_REFRESH_MARGIN, 60)
            return self._token

    def _translate_error(
        self,
        exception: Exception,
        operation: str,
        token: str = "unknown",
        scope: Optional[str] = None,
    ) -> Exception:
        """Translate HTTP exceptions to typed wiki exceptions.

        Rate limit errors are returned unchanged so that the retry logic can
        recognise them.

        Args:
            exception: The original exception
            operation: Description of the operation that failed (for logging)
            token: Token of the node, document or media involved
            scope: Permission the operation needs, used in 403 messages

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (Timeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._base_url())

        if _is_rate_limit_error(exception):
            return exception

        status_code = getattr(exception, 'status_code', None)
        code = getattr(exception, 'code', None)

        if status_code == 401 or code in INVALID_CREDENTIAL_CODES:
            creds = self._authenticator.get_credentials()
            return InvalidCredentialsError(app_id=creds.app_id, endpoint=creds.base_url)

        if status_code == 403 or code in PERMISSION_DENIED_CODES:
            return PermissionDeniedError(operation=operation, scope=scope)

        if status_code == 404 or code in NOT_FOUND_CODES:
            return NodeNotFoundError(token=token)

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"API operation failed: {operation} - {safe_error_msg}")
        return APIAccessError(f"Feishu API failure during {operation}")

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        token: str = "unknown",
        scope: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        raw: bool = False,
    ) -> Any:
        """Perform one rate-limited, retried API call.

        Args:
            method: HTTP method
            path: Path below the base URL (starting with /open-apis)
            operation: Operation description for logs and errors
            token: Token of the object involved (for not-found errors)
            scope: Permission the operation needs (for 403 errors)
            params: Query parameters
            json: JSON body
            raw: Return the Response itself for binary downloads

        Returns:
            The `data` member of the JSON body, or the Response if raw

        Raises:
            QuotaWaitCancelled: If cancelled while waiting on the rate limiter
            WikiError: Translated failure (see _translate_error)
        """
        def _call():
            self._limiter.wait(cancel_event=self._cancel_event)
            try:
                headers = {'Authorization': f"Bearer {self._tenant_token()}"}
                response = self._session.request(
                    method,
                    f"{self._base_url()}{path}",
                    headers=headers,
                    params=params,
                    json=json,
                    timeout=self._timeout,
                )
                content_type = response.headers.get('Content-Type', '')
                if raw and response.status_code < 400 and 'application/json' not in content_type:
                    return response

                try:
                    body = response.json()
                except ValueError:
                    raise FeishuResponseError(response.status_code, None, response.text[:200])

                if response.status_code >= 400 or body.get('code', 0) != 0:
                    raise FeishuResponseError(
                        response.status_code, body.get('code'), body.get('msg', '')
                    )
                return body.get('data', {})
            except (QuotaWaitCancelled, InvalidCredentialsError, APIUnreachableError):
                raise
            except Exception as e:
                translated = self._translate_error(e, operation, token=token, scope=scope)
                if translated is e:
                    raise
                raise translated from e

        logger.debug(f"Feishu API: {method} {path}")
        return retry_on_rate_limit(_call, cancel_event=self._cancel_event)

    def get_node(self, token: str) -> Node:
        """Fetch a single wiki node by its node token.

        Raises:
            NodeNotFoundError: If the node doesn't exist
            PermissionDeniedError: If the app cannot read the wiki
        """
        data = self._request(
            'GET', '/open-apis/wiki/v2/spaces/get_node',
            operation=f"get_node({token})", token=token, scope=WIKI_SCOPE,
            params={'token': token},
        )
        return Node.from_api(data.get('node', {}))

    def list_children(self, space_id: str, parent_id: str, page_token: str = "") -> ChildPage:
        """List one page of direct children of a wiki node.

        Args:
            space_id: Wiki space ID
            parent_id: Parent node token
            page_token: Continuation cursor from the previous page ("" for the first)

        Returns:
            ChildPage with the nodes, the next cursor and the has_more flag
        """
        params: Dict[str, Any] = {'page_size': WIKI_PAGE_SIZE, 'parent_node_token': parent_id}
        if page_token:
            params['page_token'] = page_token

        data = self._request(
            'GET', f"/open-apis/wiki/v2/spaces/{space_id}/nodes",
            operation=f"list_children({parent_id})", token=parent_id, scope=WIKI_SCOPE,
            params=params,
        )
        return ChildPage(
            items=[Node.from_api(item) for item in data.get('items') or []],
            next_page_token=data.get('page_token', '') or '',
            has_more=bool(data.get('has_more', False)),
        )

    def fetch_meta(self, doc_id: str) -> DocumentMeta:
        """Fetch the title and revision of a docx document."""
        data = self._request(
            'GET', f"/open-apis/docx/v1/documents/{doc_id}",
            operation=f"fetch_meta({doc_id})", token=doc_id, scope=DOCX_SCOPE,
        )
        document = data.get('document', {})
        return DocumentMeta(
            document_id=document.get('document_id', doc_id),
            title=document.get('title', ''),
            revision_id=int(document.get('revision_id', 0) or 0),
        )

    def fetch_content(self, doc_id: str) -> DocumentContent:
        """Fetch a docx document and all of its blocks.

        Block listing is paginated; every page is a separate rate-limited call.
        """
        data = self._request(
            'GET', f"/open-apis/docx/v1/documents/{doc_id}",
            operation=f"fetch_content({doc_id})", token=doc_id, scope=DOCX_SCOPE,
        )
        content = DocumentContent(document=data.get('document', {}))

        page_token = ""
        while True:
            params: Dict[str, Any] = {'page_size': BLOCK_PAGE_SIZE, 'document_revision_id': -1}
            if page_token:
                params['page_token'] = page_token
            page = self._request(
                'GET', f"/open-apis/docx/v1/documents/{doc_id}/blocks",
                operation=f"list_blocks({doc_id})", token=doc_id, scope=DOCX_SCOPE,
                params=params,
            )
            content.blocks.extend(page.get('items') or [])
            next_token = page.get('page_token', '') or ''
            if not page.get('has_more') or not next_token or next_token == page_token:
                break
            page_token = next_token

        logger.debug(f"Fetched {len(content.blocks)} blocks for document {doc_id}")
        return content

    def fetch_times(self, doc_id: str) -> DocumentTimes:
        """Fetch creation and last-modification timestamps of a docx document."""
        data = self._request(
            'POST', '/open-apis/drive/v1/metas/batch_query',
            operation=f"fetch_times({doc_id})", token=doc_id, scope=DRIVE_SCOPE,
            json={'request_docs': [{'doc_token': doc_id, 'doc_type': 'docx'}]},
        )
        metas = data.get('metas') or []
        if not metas:
            return DocumentTimes()
        return DocumentTimes(
            created_at=_parse_unix_timestamp(metas[0].get('create_time')),
            updated_at=_parse_unix_timestamp(metas[0].get('latest_modify_time')),
        )

    def fetch_asset(self, token: str) -> Asset:
        """Download an embedded media file (image) by its token.

        Raises:
            PermissionDeniedError: If the app lacks the media download scope
        """
        response = self._request(
            'GET', f"/open-apis/drive/v1/medias/{token}/download",
            operation=f"fetch_asset({token})", token=token, scope=MEDIA_SCOPE,
            raw=True,
        )
        filename = ""
        match = _FILENAME_PATTERN.search(response.headers.get('Content-Disposition', ''))
        if match:
            filename = urllib.parse.unquote(match.group(1))
        return Asset(token=token, data=response.content, filename=filename)


def _parse_unix_timestamp(value: Any) -> Optional[datetime]:
    """Parse a second or millisecond unix timestamp string, None if absent."""
    if value is None or not str(value).strip():
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        logger.warning(f"Ignoring malformed timestamp: {value!r}")
        return None
    if number > 1_000_000_000_000:
        number //= 1000
    return datetime.fromtimestamp(number, tz=timezone.utc)
