"""Resolution of the ``X-Forwarded-Host``, ``-Port`` and ``-Proto`` headers.

Each header is looked at in isolation. Whether an ambiguous header spoils the
whole request is decided by the filter, not here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from xforwarded.exceptions import InvalidForwardedHeaderNameError

logger = logging.getLogger('xforwarded.forwarded')

MAX_PORT = 65535

_HOST_FORBIDDEN = re.compile(r'[/?#@\\\s\x00-\x1f\x7f]')
_SCHEME_PATTERN = re.compile(r'[a-z][a-z0-9+.-]*')


class HeaderKind(str, Enum):
    HOST = 'X-Forwarded-Host'
    PORT = 'X-Forwarded-Port'
    PROTO = 'X-Forwarded-Proto'


class ResolutionStatus(str, Enum):
    ineligible = 'ineligible'
    absent = 'absent'
    ambiguous = 'ambiguous'
    resolved = 'resolved'


@dataclass(frozen=True)
class ForwardedValue:
    kind: HeaderKind
    status: ResolutionStatus
    value: str | int | None = None
    # Port carried inside an X-Forwarded-Host value such as ``example.com:8443``.
    port: int | None = None


ALL_HEADERS = frozenset(HeaderKind)
_KINDS_BY_NAME = {kind.value.lower(): kind for kind in HeaderKind}


def parse_header_kind(name: HeaderKind | str) -> HeaderKind:
    if isinstance(name, HeaderKind):
        return name
    if isinstance(name, str):
        kind = _KINDS_BY_NAME.get(name.strip().lower())
        if kind is not None:
            return kind
    raise InvalidForwardedHeaderNameError.for_header(name)


def parse_trusted_headers(names: Iterable[HeaderKind | str] | None) -> frozenset[HeaderKind]:
    if names is None:
        return ALL_HEADERS
    if isinstance(names, (str, HeaderKind)):
        names = [names]
    return frozenset(parse_header_kind(name) for name in names)


def _parse_port(value: str) -> int | None:
    if not value.isascii() or not value.isdigit():
        return None
    port = int(value)
    if port > MAX_PORT:
        return None
    return port


def _split_host_port(value: str) -> tuple[str, int | None] | None:
    if value.startswith('['):
        bracket_end = value.find(']')
        if bracket_end == -1:
            return None
        host, remainder = value[: bracket_end + 1], value[bracket_end + 1 :]
        if not remainder:
            return host, None
        if not remainder.startswith(':'):
            return None
        port = _parse_port(remainder[1:])
        return (host, port) if port is not None else None

    host, separator, port_text = value.rpartition(':')
    if not separator:
        return value, None
    if not host or ':' in host:
        return None
    port = _parse_port(port_text)
    if port is None:
        return None
    return host, port


def resolve_forwarded_header(
    kind: HeaderKind,
    raw_value: str | None,
    trusted_headers: frozenset[HeaderKind],
) -> ForwardedValue:
    if kind not in trusted_headers:
        return ForwardedValue(kind=kind, status=ResolutionStatus.ineligible)

    value = (raw_value or '').strip()
    if not value:
        return ForwardedValue(kind=kind, status=ResolutionStatus.absent)

    if ',' in value:
        return ForwardedValue(kind=kind, status=ResolutionStatus.ambiguous)

    if kind is HeaderKind.HOST:
        split = None if _HOST_FORBIDDEN.search(value) else _split_host_port(value)
        if split is None:
            logger.debug('forwarded_host_ignored value=%r', value)
            return ForwardedValue(kind=kind, status=ResolutionStatus.absent)
        host, port = split
        return ForwardedValue(kind=kind, status=ResolutionStatus.resolved, value=host, port=port)

    if kind is HeaderKind.PORT:
        port = _parse_port(value)
        if port is None:
            logger.debug('forwarded_port_ignored value=%r', value)
            return ForwardedValue(kind=kind, status=ResolutionStatus.absent)
        return ForwardedValue(kind=kind, status=ResolutionStatus.resolved, value=port)

    scheme = value.lower()
    if not _SCHEME_PATTERN.fullmatch(scheme):
        logger.debug('forwarded_proto_ignored value=%r', value)
        return ForwardedValue(kind=kind, status=ResolutionStatus.absent)
    return ForwardedValue(kind=kind, status=ResolutionStatus.resolved, value=scheme)
