"""Request filters deciding whether ``X-Forwarded-*`` headers may rewrite a URI."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from starlette.datastructures import URL

from xforwarded.config import Settings
from xforwarded.forwarded import (
    ForwardedValue,
    HeaderKind,
    ResolutionStatus,
    parse_trusted_headers,
    resolve_forwarded_header,
)
from xforwarded.messages import ServerRequest
from xforwarded.trust import (
    RESERVED_SUBNETS,
    AnyProxyTrusted,
    TrustSpecification,
    is_trusted,
    parse_trust_specification,
)

logger = logging.getLogger('xforwarded.filters')

TrustedHeaders = Iterable[HeaderKind | str] | None


class AmbiguityPolicy(str, Enum):
    # One ambiguous header leaves the whole request untouched.
    reject_request = 'reject_request'
    # Only the ambiguous header is ignored.
    skip_header = 'skip_header'


class DoNotFilter:
    def filter_request(self, request: ServerRequest) -> ServerRequest:
        return request


@dataclass(frozen=True)
class XForwardedHeaderFilter:
    """Rewrite the request URI from forwarded headers sent by trusted proxies.

    Build instances with :meth:`trust_proxies`, :meth:`trust_any` or
    :meth:`trust_reserved_subnets`; all configuration is validated there so
    :meth:`filter_request` never raises. A filter is immutable and can be
    shared between concurrent requests.
    """

    trust: TrustSpecification
    trusted_headers: frozenset[HeaderKind]
    ambiguity: AmbiguityPolicy = AmbiguityPolicy.reject_request

    @classmethod
    def trust_proxies(
        cls,
        proxies: str | Sequence[str],
        trusted_headers: TrustedHeaders = None,
        ambiguity: AmbiguityPolicy = AmbiguityPolicy.reject_request,
    ) -> XForwardedHeaderFilter:
        return cls(
            trust=parse_trust_specification(proxies),
            trusted_headers=parse_trusted_headers(trusted_headers),
            ambiguity=AmbiguityPolicy(ambiguity),
        )

    @classmethod
    def trust_any(
        cls,
        trusted_headers: TrustedHeaders = None,
        ambiguity: AmbiguityPolicy = AmbiguityPolicy.reject_request,
    ) -> XForwardedHeaderFilter:
        return cls(
            trust=AnyProxyTrusted(),
            trusted_headers=parse_trusted_headers(trusted_headers),
            ambiguity=AmbiguityPolicy(ambiguity),
        )

    @classmethod
    def trust_reserved_subnets(
        cls,
        trusted_headers: TrustedHeaders = None,
        ambiguity: AmbiguityPolicy = AmbiguityPolicy.reject_request,
    ) -> XForwardedHeaderFilter:
        return cls.trust_proxies(list(RESERVED_SUBNETS), trusted_headers, ambiguity)

    def filter_request(self, request: ServerRequest) -> ServerRequest:
        peer = request.remote_addr
        if not is_trusted(self.trust, peer):
            logger.debug('forwarded_headers_untrusted peer=%s', peer)
            return request

        resolved: dict[HeaderKind, ForwardedValue] = {}
        for kind in HeaderKind:
            result = resolve_forwarded_header(kind, request.header_line(kind.value), self.trusted_headers)
            if result.status is ResolutionStatus.ambiguous:
                logger.debug('forwarded_header_ambiguous peer=%s header=%s policy=%s', peer, kind.value, self.ambiguity.value)
                if self.ambiguity is AmbiguityPolicy.reject_request:
                    return request
                continue
            if result.status is ResolutionStatus.resolved:
                resolved[kind] = result

        if not resolved:
            return request

        uri = _rebuild_uri(request.uri, resolved)
        logger.debug('forwarded_headers_applied peer=%s uri=%s', peer, uri)
        return request.with_uri(uri)


def _rebuild_uri(uri: URL, resolved: dict[HeaderKind, ForwardedValue]) -> URL:
    changes: dict[str, object] = {}

    proto = resolved.get(HeaderKind.PROTO)
    if proto is not None:
        changes['scheme'] = proto.value

    host = resolved.get(HeaderKind.HOST)
    if host is not None:
        changes['hostname'] = host.value

    port = resolved.get(HeaderKind.PORT)
    if port is not None:
        changes['port'] = port.value
    elif host is not None and host.port is not None:
        changes['port'] = host.port

    # URL.replace() derives the hostname from the netloc, which may be empty.
    if 'port' in changes and 'hostname' not in changes and not uri.netloc:
        changes['hostname'] = ''

    return uri.replace(**changes)


def build_request_filter(settings: Settings) -> XForwardedHeaderFilter | DoNotFilter:
    trusted_headers = settings.trusted_forwarded_headers
    ambiguity = AmbiguityPolicy(settings.ambiguous_header_policy)

    if settings.trust_any_proxy:
        request_filter = XForwardedHeaderFilter.trust_any(trusted_headers, ambiguity)
    elif settings.trust_reserved_subnets:
        proxies = [*RESERVED_SUBNETS, *settings.trusted_proxies]
        request_filter = XForwardedHeaderFilter.trust_proxies(proxies, trusted_headers, ambiguity)
    elif settings.trusted_proxies:
        request_filter = XForwardedHeaderFilter.trust_proxies(settings.trusted_proxies, trusted_headers, ambiguity)
    else:
        logger.info('forwarded_headers_disabled reason=no_trusted_proxies')
        return DoNotFilter()

    logger.info(
        'forwarded_headers_enabled proxies=%s headers=%s policy=%s',
        request_filter.trust,
        ','.join(sorted(kind.value for kind in request_filter.trusted_headers)),
        request_filter.ambiguity.value,
    )
    return request_filter
