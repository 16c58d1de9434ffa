from __future__ import annotations


class XForwardedError(Exception):
    pass


class InvalidProxyAddressError(XForwardedError, ValueError):
    @classmethod
    def for_address(cls, value: str) -> InvalidProxyAddressError:
        return cls(f'Invalid proxy address or CIDR range: {value!r}')

    @classmethod
    def for_invalid_argument(cls, value: object) -> InvalidProxyAddressError:
        return cls(f'Proxy entries must be strings, got {type(value).__name__}')

    @classmethod
    def for_empty_list(cls) -> InvalidProxyAddressError:
        return cls('At least one trusted proxy address is required')


class InvalidForwardedHeaderNameError(XForwardedError, ValueError):
    @classmethod
    def for_header(cls, name: object) -> InvalidForwardedHeaderNameError:
        return cls(
            f'Invalid forwarded header name {name!r}; expected one of '
            'X-Forwarded-Host, X-Forwarded-Port, X-Forwarded-Proto'
        )
