"""
Property-based tests for the Block Policy Engine.

Records are built through the ResponseNormalizer from upstream-shaped
payloads, the way the client builds them.
"""

from typing import Optional

from hypothesis import given, settings
from hypothesis import strategies as st

from proxycheck_client.block_policy import BlockPolicyEngine
from proxycheck_client.enums import BlockReason, BlockStatus
from proxycheck_client.normalizer import ResponseNormalizer
from proxycheck_client.parameters import ParameterSet


COUNTRIES = [("United States", "US"), ("Germany", "DE"), ("Japan", "JP"), ("Brazil", "BR")]


def make_record(
    proxy: bool = False,
    proxy_type: Optional[str] = None,
    risk: Optional[int] = None,
    country: Optional[tuple[str, str]] = None,
    operator: Optional[dict] = None,
    subject: str = "203.0.113.7",
):
    entry: dict = {"proxy": "yes" if proxy else "no"}
    if proxy_type is not None:
        entry["type"] = proxy_type
    if risk is not None:
        entry["risk"] = risk
    if country is not None:
        entry["country"], entry["isocode"] = country
    if operator is not None:
        entry["operator"] = operator
    return ResponseNormalizer().normalize({"status": "ok", subject: entry})


class TestCountryAbsentOverrideProperty:
    """
    **Property: Missing country data always yields block=na**
    """

    @given(
        proxy=st.booleans(),
        proxy_type=st.one_of(st.none(), st.sampled_from(["VPN", "SOCKS5", "HTTP"])),
        risk=st.one_of(st.none(), st.integers(min_value=0, max_value=100)),
    )
    @settings(max_examples=100)
    def test_absent_country_is_not_applicable(self, proxy, proxy_type, risk) -> None:
        record = make_record(proxy=proxy, proxy_type=proxy_type, risk=risk)

        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.block == BlockStatus.NA
        assert decision.reason == BlockReason.NOT_APPLICABLE

    def test_vpn_with_high_risk_and_no_country(self) -> None:
        record = make_record(proxy=True, proxy_type="VPN", risk=85)
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())
        assert decision.block == BlockStatus.NA

    def test_risk_71_without_country(self) -> None:
        record = make_record(risk=71)
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())
        assert decision.block == BlockStatus.NA

    def test_operator_details_survive_override(self) -> None:
        record = make_record(
            proxy=True,
            proxy_type="VPN",
            operator={"name": "ExampleVPN", "anonymity": "high", "popularity": "low"},
        )
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.block == BlockStatus.NA
        assert decision.details.operator_name == "ExampleVPN"


class TestPolicyPrecedenceProperty:
    """
    **Property: Proxy/VPN reasons are never downgraded by the risk rule**
    """

    @given(risk=st.integers(min_value=0, max_value=100), country=st.sampled_from(COUNTRIES))
    @settings(max_examples=100)
    def test_vpn_reason_kept(self, risk: int, country) -> None:
        record = make_record(proxy=True, proxy_type="VPN", risk=risk, country=country)

        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.block == BlockStatus.YES
        assert decision.reason == BlockReason.VPN

    @given(
        proxy_type=st.one_of(st.none(), st.sampled_from(["SOCKS5", "HTTP", "Compromised Server"])),
        risk=st.integers(min_value=0, max_value=100),
    )
    @settings(max_examples=100)
    def test_proxy_reason_for_non_vpn(self, proxy_type, risk: int) -> None:
        record = make_record(proxy=True, proxy_type=proxy_type, risk=risk, country=COUNTRIES[0])
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())
        assert decision.reason == BlockReason.PROXY

    @given(risk=st.integers(min_value=71, max_value=100), country=st.sampled_from(COUNTRIES))
    @settings(max_examples=50)
    def test_high_risk_blocks(self, risk: int, country) -> None:
        record = make_record(risk=risk, country=country)

        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.block == BlockStatus.YES
        assert decision.reason == BlockReason.HIGH_RISK

    @given(risk=st.integers(min_value=0, max_value=70), country=st.sampled_from(COUNTRIES))
    @settings(max_examples=50)
    def test_risk_at_or_below_threshold_passes(self, risk: int, country) -> None:
        record = make_record(risk=risk, country=country)

        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.block == BlockStatus.NO
        assert decision.reason == BlockReason.NONE

    def test_vpn_details_copied_from_operator(self) -> None:
        record = make_record(
            proxy=True,
            proxy_type="VPN",
            country=COUNTRIES[1],
            operator={"name": "ExampleVPN", "anonymity": "high"},
        )
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())

        assert decision.details.operator_name == "ExampleVPN"
        assert decision.details.anonymity == "high"
        assert decision.details.popularity == ""


class TestCountryRulesProperty:
    """
    **Property: Blocked countries escalate, allowed countries reset**
    """

    @given(country=st.sampled_from(COUNTRIES), use_code=st.booleans())
    @settings(max_examples=50)
    def test_blocked_country_escalates(self, country, use_code: bool) -> None:
        name, code = country
        params = ParameterSet().with_blocked_countries([code if use_code else name.lower()])

        decision = BlockPolicyEngine().evaluate(make_record(risk=0, country=country), params)

        assert decision.block == BlockStatus.YES
        assert decision.reason == BlockReason.COUNTRY

    @given(country=st.sampled_from(COUNTRIES))
    @settings(max_examples=20)
    def test_allowed_country_resets_blocked(self, country) -> None:
        _, code = country
        params = ParameterSet().with_blocked_countries([code]).with_allowed_countries([code])

        decision = BlockPolicyEngine().evaluate(make_record(risk=0, country=country), params)

        assert decision.block == BlockStatus.NO
        assert decision.reason == BlockReason.NONE

    @given(country=st.sampled_from(COUNTRIES), proxy_type=st.sampled_from(["VPN", "HTTP"]))
    @settings(max_examples=20)
    def test_allowed_country_resets_proxy(self, country, proxy_type: str) -> None:
        params = ParameterSet().with_allowed_countries([country[1]])
        record = make_record(proxy=True, proxy_type=proxy_type, country=country)

        decision = BlockPolicyEngine().evaluate(record, params)

        assert decision.block == BlockStatus.NO
        assert decision.reason == BlockReason.NONE

    def test_unlisted_country_keeps_vpn(self) -> None:
        params = ParameterSet().with_blocked_countries(["DE"]).with_allowed_countries(["JP"])
        record = make_record(proxy=True, proxy_type="VPN", risk=85, country=COUNTRIES[0])

        decision = BlockPolicyEngine().evaluate(record, params)

        assert decision.block == BlockStatus.YES
        assert decision.reason == BlockReason.VPN

    def test_explicit_rules_override_parameter_rules(self) -> None:
        params = ParameterSet().with_blocked_countries(["US"])
        record = make_record(country=COUNTRIES[0])

        decision = BlockPolicyEngine().evaluate(
            record, params, country_rules=ParameterSet().country_rules
        )

        assert decision.block == BlockStatus.NO


class TestDisposableShortCircuitProperty:
    """
    **Property: The disposable flag alone decides email subjects**
    """

    @given(
        extra=st.dictionaries(
            st.sampled_from(["proxy", "type", "risk", "country", "isocode"]),
            st.sampled_from(["yes", "VPN", 99, "United States", "US"]),
        )
    )
    @settings(max_examples=50)
    def test_disposable_blocks(self, extra: dict) -> None:
        record = ResponseNormalizer().normalize(
            {"status": "ok", "user@tempmail.example": {**extra, "disposable": "yes"}}
        )

        decision = BlockPolicyEngine().evaluate(record, ParameterSet().with_allowed_countries(["US"]))

        assert decision.block == BlockStatus.YES
        assert decision.reason == BlockReason.DISPOSABLE

    def test_non_disposable_passes(self) -> None:
        record = ResponseNormalizer().normalize({"user@example.com": {"disposable": "no"}})
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())
        assert decision.block == BlockStatus.NO

    def test_missing_flag_is_not_applicable(self) -> None:
        record = ResponseNormalizer().normalize({"user@example.com": {}})
        decision = BlockPolicyEngine().evaluate(record, ParameterSet())
        assert decision.block == BlockStatus.NA


class TestApplyEmbedsDecision:
    """apply() attaches the decision to the record and the cacheable payload."""

    def test_apply_round_trips_through_normalizer(self) -> None:
        record = make_record(
            proxy=True,
            proxy_type="VPN",
            country=COUNTRIES[0],
            operator={"name": "ExampleVPN", "anonymity": "high", "popularity": "low"},
        )

        applied, payload = BlockPolicyEngine().apply(record, ParameterSet())

        assert payload["block"] == "yes"
        assert payload["block_reason"] == "vpn"
        assert payload["block_details"]["name"] == "ExampleVPN"
        assert applied.raw == payload
        assert "block" not in record.raw

        restored = ResponseNormalizer().normalize(payload)
        assert restored.decision == applied.decision
        assert restored == applied
