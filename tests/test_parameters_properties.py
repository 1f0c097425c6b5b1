"""
Property-based tests for the ParameterSet and CountryRuleSet.

Uses Hypothesis to verify range validation, immutability of the fluent
setters, and the query parameter serialization.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from proxycheck_client.exceptions import ValidationError
from proxycheck_client.parameters import CountryRuleSet, ParameterSet


QUERY_KEYS = {"vpn", "asn", "node", "time", "inf", "risk", "port", "seen", "days", "tag", "ver", "mask"}


@st.composite
def country_strategy(draw) -> str:
    """Generate ISO-like country codes or names in mixed case."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ "),
        min_size=2,
        max_size=20,
    ).filter(lambda s: s.strip()))


class TestParameterDefaults:
    """Defaults match the upstream defaults."""

    def test_default_query_params(self) -> None:
        params = ParameterSet().to_query_params()

        assert set(params) == QUERY_KEYS
        assert params["vpn"] == 0
        assert params["asn"] == 0
        assert params["risk"] == 0
        assert params["days"] == 7
        assert params["tag"] == ""
        assert params["ver"] == 2
        assert params["mask"] == 0


class TestParameterRangeProperty:
    """
    Property-based tests for parameter range validation.

    **Property: Out-of-range parameters are rejected with ValidationError**
    """

    @given(mode=st.integers(min_value=0, max_value=3))
    @settings(max_examples=20)
    def test_valid_vpn_modes_accepted(self, mode: int) -> None:
        assert ParameterSet().with_vpn(mode).to_query_params()["vpn"] == mode

    @given(mode=st.one_of(st.integers(max_value=-1), st.integers(min_value=4)))
    @settings(max_examples=50)
    def test_invalid_vpn_modes_rejected(self, mode: int) -> None:
        try:
            ParameterSet().with_vpn(mode)
            assert False, "Expected ValidationError"
        except ValidationError as e:
            assert e.code == "invalid_parameter"
            assert e.details["parameter"] == "vpn_mode"
            assert e.message == "VPN mode must be between 0 and 3"

    @given(level=st.one_of(st.integers(max_value=-1), st.integers(min_value=3)))
    @settings(max_examples=50)
    def test_invalid_risk_levels_rejected(self, level: int) -> None:
        try:
            ParameterSet().with_risk(level)
            assert False, "Expected ValidationError"
        except ValidationError as e:
            assert e.details["parameter"] == "risk_level"

    @given(days=st.integers(max_value=0))
    @settings(max_examples=50)
    def test_non_positive_days_rejected(self, days: int) -> None:
        try:
            ParameterSet().with_days(days)
            assert False, "Expected ValidationError"
        except ValidationError as e:
            assert e.message == "Days must be greater than 0"

    @given(days=st.integers(min_value=1, max_value=10_000))
    @settings(max_examples=50)
    def test_positive_days_accepted(self, days: int) -> None:
        assert ParameterSet().with_days(days).history_days == days


class TestParameterImmutabilityProperty:
    """
    **Property: Fluent setters never modify the original set**
    """

    @given(
        mode=st.integers(min_value=0, max_value=3),
        risk=st.integers(min_value=0, max_value=2),
        tag=st.text(max_size=30),
    )
    @settings(max_examples=50)
    def test_setters_return_new_instances(self, mode: int, risk: int, tag: str) -> None:
        original = ParameterSet()
        snapshot = original.to_query_params()

        updated = original.with_vpn(mode).with_risk(risk).with_tag(tag).with_asn(True)

        assert original.to_query_params() == snapshot
        assert updated.vpn_mode == mode
        assert updated.risk_level == risk
        assert updated.tag == tag
        assert updated.to_query_params()["asn"] == 1


class TestCountryRulesProperty:
    """
    **Property: Country rules match case-insensitively on name or code**
    """

    @given(countries=st.lists(country_strategy(), min_size=1, max_size=5))
    @settings(max_examples=50)
    def test_blocked_countries_uppercased(self, countries: list[str]) -> None:
        params = ParameterSet().with_blocked_countries(countries)

        assert params.blocked_countries == frozenset(c.strip().upper() for c in countries)
        for country in countries:
            assert params.country_rules.is_blocked(country.strip().lower())

    @given(countries=st.lists(country_strategy(), min_size=1, max_size=5))
    @settings(max_examples=30)
    def test_blocked_countries_enable_asn(self, countries: list[str]) -> None:
        params = ParameterSet().with_blocked_countries(countries)
        assert params.include_asn is True

    def test_empty_blocked_list_leaves_asn_off(self) -> None:
        assert ParameterSet().with_blocked_countries([]).include_asn is False

    def test_empty_entries_dropped(self) -> None:
        rules = CountryRuleSet(blocked=frozenset({"", "  ", "us"}))
        assert rules.blocked == frozenset({"US"})

    def test_none_identifiers_never_match(self) -> None:
        rules = CountryRuleSet(blocked=frozenset({"US"}), allowed=frozenset({"DE"}))
        assert not rules.is_blocked(None, None)
        assert not rules.is_allowed(None)
        assert rules.is_blocked(None, "us")
        assert rules.is_allowed("Germany", "de")

    def test_allowed_list_kept_when_blocked_replaced(self) -> None:
        params = ParameterSet().with_allowed_countries(["DE"]).with_blocked_countries(["US"])
        assert params.allowed_countries == frozenset({"DE"})
        assert params.blocked_countries == frozenset({"US"})

    @given(country=country_strategy(), blocked=st.booleans())
    @settings(max_examples=30)
    def test_single_string_rejected(self, country: str, blocked: bool) -> None:
        params = ParameterSet()
        setter = params.with_blocked_countries if blocked else params.with_allowed_countries
        try:
            setter(country)
            assert False, "Expected ValidationError"
        except ValidationError as e:
            assert e.code == "invalid_parameter"
            assert e.details["value"] == country

    def test_single_string_rejected_by_rule_set(self) -> None:
        try:
            CountryRuleSet(blocked="US")
            assert False, "Expected ValidationError"
        except ValidationError:
            pass


class TestCacheOptions:
    """Cache options change whenever the answer or the decision could."""

    def test_country_rules_included(self) -> None:
        plain = ParameterSet().with_asn(True)
        blocked = plain.with_blocked_countries(["us"])
        allowed = plain.with_allowed_countries(["us"])

        assert plain.to_query_params() == blocked.to_query_params()
        assert plain.to_cache_options() != blocked.to_cache_options()
        assert blocked.to_cache_options() != allowed.to_cache_options()
        assert blocked.to_cache_options()["blocked_countries"] == ["US"]

    @given(countries=st.lists(country_strategy(), max_size=5))
    @settings(max_examples=30)
    def test_order_of_countries_irrelevant(self, countries: list[str]) -> None:
        forward = ParameterSet().with_blocked_countries(countries)
        backward = ParameterSet().with_blocked_countries(list(reversed(countries)))
        assert forward.to_cache_options() == backward.to_cache_options()


class TestAutoTag:
    """Query tagging fills an empty tag only."""

    def test_auto_tag_uses_fallback(self) -> None:
        params = ParameterSet().with_auto_tag(True, fallback="shop.example.com")
        assert params.tag == "shop.example.com"
        assert params.to_query_params()["tag"] == "shop.example.com"

    def test_auto_tag_keeps_explicit_tag(self) -> None:
        params = ParameterSet().with_tag("checkout").with_auto_tag(True, fallback="host")
        assert params.tag == "checkout"

    def test_auto_tag_defaults_to_host_name(self) -> None:
        params = ParameterSet().with_auto_tag(True)
        assert params.auto_tag is True
        assert params.tag != ""

    def test_disabling_auto_tag_keeps_tag(self) -> None:
        params = ParameterSet().with_auto_tag(True, fallback="host").with_auto_tag(False)
        assert params.auto_tag is False
        assert params.tag == "host"
