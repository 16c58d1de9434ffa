from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from xforwarded.cidr import ProxyRange, matches, parse_proxy_range
from xforwarded.exceptions import InvalidProxyAddressError

RESERVED_SUBNETS = (
    '10.0.0.0/8',
    '127.0.0.0/8',
    '172.16.0.0/12',
    '192.168.0.0/16',
)


@dataclass(frozen=True)
class AnyProxyTrusted:
    def __str__(self) -> str:
        return '*'


@dataclass(frozen=True)
class ProxyRangeList:
    ranges: tuple[ProxyRange, ...]

    def __str__(self) -> str:
        return ','.join(str(item) for item in self.ranges)


TrustSpecification = AnyProxyTrusted | ProxyRangeList


def parse_trust_specification(proxies: str | Sequence[str]) -> ProxyRangeList:
    if isinstance(proxies, str):
        proxies = [proxies]
    elif not isinstance(proxies, Sequence):
        raise InvalidProxyAddressError.for_invalid_argument(proxies)
    if not proxies:
        raise InvalidProxyAddressError.for_empty_list()
    return ProxyRangeList(ranges=tuple(parse_proxy_range(proxy) for proxy in proxies))


def is_trusted(spec: TrustSpecification, peer: str | None) -> bool:
    if isinstance(spec, AnyProxyTrusted):
        return True
    return any(matches(proxy_range, peer) for proxy_range in spec.ranges)
