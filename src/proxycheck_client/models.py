"""
Data models for the proxycheck client.

This module defines the normalized check records, the block decision
attached to them, and the tagged outcome returned by public operations.
Records are frozen; absence of an upstream field is always ``None``.
"""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar, Union

from .enums import BlockReason, BlockStatus
from .exceptions import ProxyCheckError

T = TypeVar("T")


ATTACK_HISTORY_FIELDS = (
    "login_attempts",
    "registration_attempts",
    "comment_spam",
    "denial_of_service",
    "forum_spam",
    "form_submission",
    "vulnerability_probing",
)


@dataclass(frozen=True)
class BlockDetails:
    """Operator information attached to proxy/VPN blocks."""

    operator_name: str = ""
    anonymity: str = ""
    popularity: str = ""


@dataclass(frozen=True)
class BlockDecision:
    """Local block verdict computed from upstream signals and country rules."""

    block: BlockStatus
    reason: BlockReason
    details: Optional[BlockDetails] = None

    @property
    def should_block(self) -> bool:
        return self.block == BlockStatus.YES


@dataclass(frozen=True)
class Operator:
    name: Optional[str] = None
    asn: Optional[str] = None


@dataclass(frozen=True)
class OperatorDetails:
    """The upstream ``operator`` object reported for known VPN/proxy services."""

    name: Optional[str] = None
    url: Optional[str] = None
    anonymity: Optional[str] = None
    popularity: Optional[str] = None
    protocols: tuple = ()
    policies: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Continent:
    name: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class Country:
    name: Optional[str] = None
    code: Optional[str] = None
    is_eu: bool = False


@dataclass(frozen=True)
class Region:
    name: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Currency:
    code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


@dataclass(frozen=True)
class Geography:
    """Location data; each part is None when the upstream omitted it."""

    continent: Optional[Continent] = None
    country: Optional[Country] = None
    region: Optional[Region] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    timezone: Optional[str] = None
    currency: Optional[Currency] = None


@dataclass(frozen=True)
class Devices:
    address: int = 0
    subnet: int = 0


@dataclass(frozen=True)
class CheckRecord:
    """Fields shared by every normalized check response."""

    subject: str
    status: Optional[str]
    message: Optional[str]
    node: Optional[str]
    query_time: Optional[float]
    decision: Optional[BlockDecision]
    raw: dict = field(compare=False, repr=False)

    @property
    def success(self) -> bool:
        # The upstream omits status on some successful answers.
        return (self.status or "ok") == "ok"

    @property
    def should_block(self) -> bool:
        return self.decision is not None and self.decision.should_block

    @property
    def block_reason(self) -> Optional[BlockReason]:
        return self.decision.reason if self.decision else None

    @property
    def block_details(self) -> Optional[BlockDetails]:
        return self.decision.details if self.decision else None


@dataclass(frozen=True)
class IPRecord(CheckRecord):
    """Normalized result of an IP address check."""

    is_proxy: bool = False
    proxy_type: Optional[str] = None
    risk_score: Optional[int] = None
    provider: Optional[str] = None
    organisation: Optional[str] = None
    hostname: Optional[str] = None
    ip_range: Optional[str] = None
    operator: Optional[Operator] = None
    operator_details: Optional[OperatorDetails] = None
    geography: Optional[Geography] = None
    attack_history: Optional[dict[str, int]] = None
    port: Optional[int] = None
    last_seen: Optional[str] = None
    devices: Optional[Devices] = None

    @property
    def ip(self) -> str:
        return self.subject

    @property
    def is_vpn(self) -> Optional[bool]:
        """True/False when the type is known, None otherwise."""
        if self.proxy_type is None:
            return None
        return self.proxy_type.lower() == "vpn"

    @property
    def country(self) -> Optional[Country]:
        return self.geography.country if self.geography else None

    @property
    def asn(self) -> Optional[str]:
        return self.operator.asn if self.operator else None


@dataclass(frozen=True)
class EmailRecord(CheckRecord):
    """Normalized result of a disposable-email check."""

    # None when the upstream did not report the flag.
    is_disposable: Optional[bool] = None

    @property
    def email(self) -> str:
        return self.subject


NormalizedRecord = Union[IPRecord, EmailRecord]


@dataclass(frozen=True)
class CheckOutcome(Generic[T]):
    """
    Tagged result of a public operation.

    Exactly one of ``value`` and ``error`` is set; ``success`` tells which.
    """

    success: bool
    value: Optional[T] = None
    error: Optional[ProxyCheckError] = None

    @classmethod
    def ok(cls, value: T) -> "CheckOutcome[T]":
        return cls(success=True, value=value, error=None)

    @classmethod
    def fail(cls, error: ProxyCheckError) -> "CheckOutcome[T]":
        return cls(success=False, value=None, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if not self.success:
            raise self.error
        return self.value
