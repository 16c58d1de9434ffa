import unittest

from xforwarded.exceptions import InvalidForwardedHeaderNameError
from xforwarded.forwarded import (
    ALL_HEADERS,
    HeaderKind,
    ResolutionStatus,
    parse_header_kind,
    parse_trusted_headers,
    resolve_forwarded_header,
)


class TrustedHeaderParsingTests(unittest.TestCase):
    def test_unspecified_headers_trust_all(self) -> None:
        self.assertEqual(parse_trusted_headers(None), ALL_HEADERS)
        self.assertEqual(len(ALL_HEADERS), 3)

    def test_explicit_empty_list_trusts_nothing(self) -> None:
        self.assertEqual(parse_trusted_headers([]), frozenset())

    def test_constants_and_full_header_names_are_accepted(self) -> None:
        headers = parse_trusted_headers([HeaderKind.HOST, 'x-forwarded-proto', 'X-FORWARDED-PORT'])
        self.assertEqual(headers, ALL_HEADERS)

    def test_unknown_names_are_rejected(self) -> None:
        for name in ['Host', 'X-Forwarded-For', 'proto', '', 7]:
            with self.subTest(name=name):
                with self.assertRaises(InvalidForwardedHeaderNameError):
                    parse_header_kind(name)

    def test_single_name_is_accepted(self) -> None:
        self.assertEqual(parse_trusted_headers(HeaderKind.PORT), frozenset({HeaderKind.PORT}))


class ResolveForwardedHeaderTests(unittest.TestCase):
    def test_untrusted_kind_is_ineligible_even_when_ambiguous(self) -> None:
        result = resolve_forwarded_header(HeaderKind.PORT, '8080,9000', frozenset({HeaderKind.HOST}))
        self.assertIs(result.status, ResolutionStatus.ineligible)
        self.assertIsNone(result.value)

    def test_missing_or_blank_header_is_absent(self) -> None:
        for raw in [None, '', '   ']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.HOST, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)

    def test_comma_marks_value_as_ambiguous(self) -> None:
        for kind, raw in [
            (HeaderKind.HOST, 'example.com,proxy.api.example.com'),
            (HeaderKind.PORT, '8080,9000'),
            (HeaderKind.PROTO, 'http,https'),
            (HeaderKind.HOST, 'example.com,'),
        ]:
            with self.subTest(kind=kind, raw=raw):
                result = resolve_forwarded_header(kind, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.ambiguous)

    def test_host_is_used_verbatim(self) -> None:
        result = resolve_forwarded_header(HeaderKind.HOST, ' example.com ', ALL_HEADERS)
        self.assertIs(result.status, ResolutionStatus.resolved)
        self.assertEqual(result.value, 'example.com')
        self.assertIsNone(result.port)

    def test_host_with_port_suffix_carries_port(self) -> None:
        result = resolve_forwarded_header(HeaderKind.HOST, 'example.com:8443', ALL_HEADERS)
        self.assertEqual(result.value, 'example.com')
        self.assertEqual(result.port, 8443)

    def test_port_is_parsed_as_integer(self) -> None:
        result = resolve_forwarded_header(HeaderKind.PORT, '4433', ALL_HEADERS)
        self.assertIs(result.status, ResolutionStatus.resolved)
        self.assertEqual(result.value, 4433)

    def test_malformed_port_is_treated_as_absent(self) -> None:
        for raw in ['https', '-1', '70000', '44.3']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.PORT, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)

    def test_proto_is_lower_cased(self) -> None:
        result = resolve_forwarded_header(HeaderKind.PROTO, 'HTTPS', ALL_HEADERS)
        self.assertIs(result.status, ResolutionStatus.resolved)
        self.assertEqual(result.value, 'https')

    def test_host_with_path_query_fragment_or_userinfo_is_ignored(self) -> None:
        for raw in ['example.com/evil', 'example.com?x=1', 'example.com#frag', 'user@evil.com', 'example.com\\evil']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.HOST, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)
                self.assertIsNone(result.value)

    def test_host_with_whitespace_or_control_characters_is_ignored(self) -> None:
        for raw in ['exa mple.com', 'example.com\tevil', 'example.com\x00', 'example.com\x7f', 'example.com\r\nX-Evil: 1']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.HOST, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)

    def test_host_with_malformed_port_suffix_is_ignored(self) -> None:
        for raw in ['example.com:', 'example.com:abc', 'example.com:70000', ':8080', 'a:b:c', '[::1', '[::1]x']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.HOST, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)

    def test_bracketed_host_keeps_brackets_and_splits_port(self) -> None:
        result = resolve_forwarded_header(HeaderKind.HOST, '[::1]:8443', ALL_HEADERS)
        self.assertEqual(result.value, '[::1]')
        self.assertEqual(result.port, 8443)

    def test_proto_that_is_not_a_scheme_token_is_ignored(self) -> None:
        for raw in ['https://evil.com/x?', 'http/1.1', '1http', 'ht tp', 'https:', '-https', 'https#']:
            with self.subTest(raw=raw):
                result = resolve_forwarded_header(HeaderKind.PROTO, raw, ALL_HEADERS)
                self.assertIs(result.status, ResolutionStatus.absent)

    def test_proto_scheme_token_characters_are_accepted(self) -> None:
        result = resolve_forwarded_header(HeaderKind.PROTO, 'Svn+SSH', ALL_HEADERS)
        self.assertIs(result.status, ResolutionStatus.resolved)
        self.assertEqual(result.value, 'svn+ssh')


if __name__ == '__main__':
    unittest.main()
