from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from starlette.datastructures import URL, Headers
from starlette.types import Scope


def _build_headers(headers: Headers | Mapping[str, str] | Sequence[tuple[str, str]] | None) -> Headers:
    if headers is None:
        return Headers()
    if isinstance(headers, Headers):
        return headers
    items = headers.items() if isinstance(headers, Mapping) else headers
    raw = [(key.lower().encode('latin-1'), value.encode('latin-1')) for key, value in items]
    return Headers(raw=raw)


@dataclass(frozen=True)
class ServerRequest:
    uri: URL
    method: str = 'GET'
    headers: Headers = field(default_factory=Headers)
    server_params: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b''
    protocol_version: str = '1.1'

    @classmethod
    def build(
        cls,
        uri: str | URL,
        *,
        server_params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | Sequence[tuple[str, str]] | None = None,
        method: str = 'GET',
        body: bytes = b'',
        protocol_version: str = '1.1',
    ) -> ServerRequest:
        return cls(
            uri=uri if isinstance(uri, URL) else URL(uri),
            method=method.upper(),
            headers=_build_headers(headers),
            server_params=dict(server_params or {}),
            body=body,
            protocol_version=protocol_version,
        )

    @classmethod
    def from_scope(cls, scope: Scope, body: bytes = b'') -> ServerRequest:
        server_params: dict[str, str] = {
            'REQUEST_METHOD': scope.get('method', 'GET'),
            'SERVER_PROTOCOL': f"HTTP/{scope.get('http_version', '1.1')}",
        }
        client = scope.get('client')
        if client:
            server_params['REMOTE_ADDR'] = str(client[0])
            if len(client) > 1 and client[1] is not None:
                server_params['REMOTE_PORT'] = str(client[1])
        server = scope.get('server')
        if server:
            server_params['SERVER_NAME'] = str(server[0])
            if len(server) > 1 and server[1] is not None:
                server_params['SERVER_PORT'] = str(server[1])

        return cls(
            uri=URL(scope=scope),
            method=server_params['REQUEST_METHOD'],
            headers=Headers(scope=scope),
            server_params=server_params,
            body=body,
            protocol_version=scope.get('http_version', '1.1'),
        )

    @property
    def remote_addr(self) -> str | None:
        return self.server_params.get('REMOTE_ADDR')

    def header_line(self, name: str) -> str:
        return ','.join(self.headers.getlist(name))

    def with_uri(self, uri: URL) -> ServerRequest:
        return replace(self, uri=uri)
