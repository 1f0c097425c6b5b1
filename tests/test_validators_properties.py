"""
Property-based tests for subject validation and email masking.
"""

import ipaddress

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from proxycheck_client.exceptions import ValidationError
from proxycheck_client.validators import SubjectValidator, is_email, mask_email


@st.composite
def local_part_strategy(draw) -> str:
    """Generate simple valid email local parts."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789_+-"),
        min_size=1,
        max_size=30,
    ))


@st.composite
def domain_strategy(draw) -> str:
    """Generate valid ASCII domains."""
    label = st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
        min_size=1,
        max_size=15,
    )
    labels = draw(st.lists(label, min_size=1, max_size=3))
    tld = draw(st.sampled_from(["com", "net", "org", "io", "de"]))
    return ".".join(labels + [tld])


class TestIPValidationProperty:
    """
    **Property: Every textual IPv4/IPv6 address validates unchanged**
    """

    @given(address=st.ip_addresses())
    @settings(max_examples=100)
    def test_valid_addresses_accepted(self, address) -> None:
        result = SubjectValidator().validate_ip(str(address))

        assert result.valid
        assert result.canonical == str(address)
        assert result.error is None

    @given(address=st.ip_addresses(v=4))
    @settings(max_examples=30)
    def test_surrounding_whitespace_stripped(self, address) -> None:
        result = SubjectValidator().validate_ip(f"  {address}\n")
        assert result.canonical == str(address)

    @given(text=st.text(max_size=40))
    @settings(max_examples=100)
    def test_non_addresses_rejected(self, text: str) -> None:
        try:
            ipaddress.ip_address(text.strip())
            assume(False)
        except ValueError:
            pass

        result = SubjectValidator().validate_ip(text)

        assert not result.valid
        assert result.canonical is None
        assert isinstance(result.error, ValidationError)
        assert result.error.code == "invalid_ip"

    def test_raise_for_error(self) -> None:
        try:
            SubjectValidator().validate_ip("not-an-ip").raise_for_error()
            assert False, "Expected ValidationError"
        except ValidationError as e:
            assert e.details["raw_input"] == "not-an-ip"

    def test_non_string_rejected(self) -> None:
        assert not SubjectValidator().is_valid_ip(None)


class TestEmailValidationProperty:
    """
    **Property: Well-formed addresses validate; domains are IDNA-encoded**
    """

    @given(local=local_part_strategy(), domain=domain_strategy())
    @settings(max_examples=100)
    def test_valid_addresses_accepted(self, local: str, domain: str) -> None:
        result = SubjectValidator().validate_email(f"{local}@{domain}")

        assert result.valid
        assert result.canonical == f"{local}@{domain}"

    def test_unicode_domain_encoded(self) -> None:
        result = SubjectValidator().validate_email("user@bücher.de")

        assert result.valid
        assert result.canonical == "user@xn--bcher-kva.de"

    def test_malformed_addresses_rejected(self) -> None:
        validator = SubjectValidator()
        for candidate in [
            "", "plain", "a@b@example.com", "@example.com", "user@",
            "user@localhost", ".user@example.com", "us..er@example.com",
            "us er@example.com",
        ]:
            result = validator.validate_email(candidate)
            assert not result.valid, candidate
            assert result.error.code == "invalid_email"


class TestEmailMaskingProperty:
    """
    **Property: Masking replaces the local part and keeps the domain**
    """

    @given(local=local_part_strategy(), domain=domain_strategy())
    @settings(max_examples=100)
    def test_mask_keeps_domain(self, local: str, domain: str) -> None:
        masked = mask_email(f"{local}@{domain}")
        assert masked == f"anonymous@{domain}"

    @given(local=local_part_strategy(), domain=domain_strategy())
    @settings(max_examples=30)
    def test_mask_is_idempotent(self, local: str, domain: str) -> None:
        once = mask_email(f"{local}@{domain}")
        assert mask_email(once) == once

    def test_non_email_unchanged(self) -> None:
        assert mask_email("1.2.3.4") == "1.2.3.4"

    def test_is_email(self) -> None:
        assert is_email("user@example.com")
        assert not is_email("2001:db8::1")
