"""ASGI middleware applying a request filter to every incoming scope."""

from __future__ import annotations

import logging
from copy import copy

from starlette.datastructures import URL
from starlette.types import ASGIApp, Receive, Scope, Send

from xforwarded.filters import DoNotFilter, XForwardedHeaderFilter
from xforwarded.messages import ServerRequest

logger = logging.getLogger('xforwarded.middleware')

DEFAULT_PORTS = {'http': 80, 'https': 443, 'ws': 80, 'wss': 443}
WEBSOCKET_SCHEMES = {'http': 'ws', 'https': 'wss'}


class XForwardedHeaderMiddleware:
    """Rewrite ``scheme``, ``server`` and the ``Host`` header from a filtered request.

    Only scopes for which the filter returns a different request are touched,
    and the rewrite is done on a copy of the scope. Downstream,
    ``request.url`` reflects the URI the original client addressed.
    """

    def __init__(self, app: ASGIApp, *, request_filter: XForwardedHeaderFilter | DoNotFilter) -> None:
        self.app = app
        self.request_filter = request_filter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] not in ('http', 'websocket'):
            await self.app(scope, receive, send)
            return

        request = ServerRequest.from_scope(scope)
        filtered = self.request_filter.filter_request(request)
        if filtered is not request and filtered.uri != request.uri:
            logger.debug('scope_rewritten from=%s to=%s', request.uri, filtered.uri)
            scope = _apply_uri(scope, filtered.uri)

        await self.app(scope, receive, send)


def _apply_uri(scope: Scope, uri: URL) -> Scope:
    scope = copy(scope)
    scheme = uri.scheme
    if scope['type'] == 'websocket':
        scheme = WEBSOCKET_SCHEMES.get(scheme, scheme)
    scope['scheme'] = scheme

    port = uri.port if uri.port is not None else DEFAULT_PORTS.get(scheme)
    scope['server'] = (uri.hostname, port)

    headers = [(key, value) for key, value in scope.get('headers', []) if key != b'host']
    headers.append((b'host', uri.netloc.encode('latin-1')))
    scope['headers'] = headers
    return scope
