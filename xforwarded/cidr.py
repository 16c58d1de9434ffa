from __future__ import annotations

from dataclasses import dataclass
from ipaddress import IPv4Address

from xforwarded.exceptions import InvalidProxyAddressError

_MAX_PREFIX = 32
_ALL_BITS = 0xFFFFFFFF


@dataclass(frozen=True)
class ProxyRange:
    network: int
    prefix: int

    def __str__(self) -> str:
        return f'{IPv4Address(self.network)}/{self.prefix}'


def _mask(prefix: int) -> int:
    return (_ALL_BITS << (_MAX_PREFIX - prefix)) & _ALL_BITS


def _address_to_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(IPv4Address(value))
    except ValueError:
        return None


def parse_proxy_range(spec: str) -> ProxyRange:
    if not isinstance(spec, str):
        raise InvalidProxyAddressError.for_invalid_argument(spec)

    address, separator, prefix_text = spec.strip().partition('/')
    if separator:
        if not prefix_text.isdigit() or not prefix_text.isascii():
            raise InvalidProxyAddressError.for_address(spec)
        prefix = int(prefix_text)
        if prefix > _MAX_PREFIX:
            raise InvalidProxyAddressError.for_address(spec)
    else:
        prefix = _MAX_PREFIX

    parsed = _address_to_int(address)
    if parsed is None:
        raise InvalidProxyAddressError.for_address(spec)
    return ProxyRange(network=parsed & _mask(prefix), prefix=prefix)


def matches(proxy_range: ProxyRange, candidate: str | None) -> bool:
    address = _address_to_int(candidate)
    if address is None:
        return False
    return address & _mask(proxy_range.prefix) == proxy_range.network
