"""
Request parameters and country rules.

A ParameterSet is an immutable value: every ``with_*`` call validates its
input and returns an updated copy. The client snapshots the set it holds
when a request is built, so a request never observes a half-applied change.
"""

import socket
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from .enums import ErrorCode
from .exceptions import ValidationError


VPN_MODES = range(0, 4)
RISK_LEVELS = range(0, 3)


def _normalize_countries(countries: Iterable[str]) -> frozenset[str]:
    if isinstance(countries, str):
        raise ValidationError(
            code=ErrorCode.INVALID_PARAMETER.value,
            message="Countries must be given as a list, not a single string",
            details={"parameter": "countries", "value": countries},
        )
    return frozenset(c.strip().upper() for c in countries if c and c.strip())


@dataclass(frozen=True)
class CountryRuleSet:
    """Blocked and allowed countries, by name or ISO code, uppercased."""

    blocked: frozenset[str] = frozenset()
    allowed: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "blocked", _normalize_countries(self.blocked))
        object.__setattr__(self, "allowed", _normalize_countries(self.allowed))

    def is_blocked(self, *identifiers: Optional[str]) -> bool:
        return any(i and i.upper() in self.blocked for i in identifiers)

    def is_allowed(self, *identifiers: Optional[str]) -> bool:
        return any(i and i.upper() in self.allowed for i in identifiers)


@dataclass(frozen=True)
class ParameterSet:
    """Request-shaping options sent with every check."""

    vpn_mode: int = 0
    include_asn: bool = False
    include_node: bool = False
    include_query_time: bool = False
    include_basic_info: bool = False
    risk_level: int = 0
    include_port: bool = False
    include_last_seen: bool = False
    history_days: int = 7
    tag: str = ""
    mask_email: bool = False
    auto_tag: bool = False
    api_version: int = 2
    country_rules: CountryRuleSet = field(default_factory=CountryRuleSet)

    def __post_init__(self) -> None:
        if self.vpn_mode not in VPN_MODES:
            raise self._range_error("vpn_mode", "VPN mode must be between 0 and 3", self.vpn_mode)
        if self.risk_level not in RISK_LEVELS:
            raise self._range_error("risk_level", "Risk level must be between 0 and 2", self.risk_level)
        if self.history_days < 1:
            raise self._range_error("history_days", "Days must be greater than 0", self.history_days)

    @staticmethod
    def _range_error(name: str, message: str, value) -> ValidationError:
        return ValidationError(
            code=ErrorCode.INVALID_PARAMETER.value,
            message=message,
            details={"parameter": name, "value": value},
        )

    def with_vpn(self, mode: int) -> "ParameterSet":
        return replace(self, vpn_mode=mode)

    def with_asn(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_asn=enabled)

    def with_node(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_node=enabled)

    def with_query_time(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_query_time=enabled)

    def with_basic_info(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_basic_info=enabled)

    def with_risk(self, level: int) -> "ParameterSet":
        return replace(self, risk_level=level)

    def with_port(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_port=enabled)

    def with_last_seen(self, enabled: bool) -> "ParameterSet":
        return replace(self, include_last_seen=enabled)

    def with_days(self, days: int) -> "ParameterSet":
        return replace(self, history_days=days)

    def with_tag(self, tag: str) -> "ParameterSet":
        return replace(self, tag=tag)

    def with_mask_email(self, enabled: bool) -> "ParameterSet":
        return replace(self, mask_email=enabled)

    def with_auto_tag(self, enabled: bool, fallback: Optional[str] = None) -> "ParameterSet":
        """
        Enable or disable query tagging.

        When enabled and no tag is set, the tag is filled with ``fallback``
        (the local host name when not given).
        """
        tag = self.tag
        if enabled and not tag:
            tag = fallback if fallback is not None else socket.gethostname()
        return replace(self, auto_tag=enabled, tag=tag)

    def with_blocked_countries(self, countries: Iterable[str]) -> "ParameterSet":
        """
        Replace the blocked country list.

        A non-empty list also turns on ASN data, which carries the country
        fields the block rules match against.
        """
        rules = CountryRuleSet(blocked=_normalize_countries(countries), allowed=self.country_rules.allowed)
        include_asn = self.include_asn or bool(rules.blocked)
        return replace(self, country_rules=rules, include_asn=include_asn)

    def with_allowed_countries(self, countries: Iterable[str]) -> "ParameterSet":
        rules = CountryRuleSet(blocked=self.country_rules.blocked, allowed=_normalize_countries(countries))
        return replace(self, country_rules=rules)

    @property
    def blocked_countries(self) -> frozenset[str]:
        return self.country_rules.blocked

    @property
    def allowed_countries(self) -> frozenset[str]:
        return self.country_rules.allowed

    def to_query_params(self) -> dict:
        """Serialize to the upstream query parameter names."""
        return {
            "vpn": self.vpn_mode,
            "asn": int(self.include_asn),
            "node": int(self.include_node),
            "time": int(self.include_query_time),
            "inf": int(self.include_basic_info),
            "risk": self.risk_level,
            "port": int(self.include_port),
            "seen": int(self.include_last_seen),
            "days": self.history_days,
            "tag": self.tag,
            "ver": self.api_version,
            "mask": int(self.mask_email),
        }

    def to_cache_options(self) -> dict:
        """Everything that shapes a cached answer: query parameters and country rules."""
        return {
            **self.to_query_params(),
            "blocked_countries": sorted(self.blocked_countries),
            "allowed_countries": sorted(self.allowed_countries),
        }
