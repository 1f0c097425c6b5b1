"""
Dashboard response models.

Thin read-only wrappers over dashboard export payloads. Aggregation here
is plain summation and percentage arithmetic.
"""

from dataclasses import dataclass
from typing import Any, Optional


QUERY_COUNTERS = {
    "proxies": "proxies",
    "vpns": "vpns",
    "undetected": "undetected",
    "disposable_emails": "disposable emails",
    "reusable_emails": "reusable emails",
    "refused_queries": "refused queries",
    "custom_rules": "custom rules",
    "blacklisted": "blacklisted",
    "total_queries": "total queries",
}

EMPTY_LIST_MESSAGE = "This list is empty."


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class DashboardPayload:
    """Base wrapper holding the raw dashboard payload."""

    def __init__(self, data: dict) -> None:
        self._data = data

    @property
    def raw(self) -> dict:
        return self._data

    @property
    def status(self) -> Optional[str]:
        return self._data.get("status")

    @property
    def message(self) -> Optional[str]:
        return self._data.get("message")

    @property
    def success(self) -> bool:
        return (self.status or "ok") == "ok"


class UsageStatistics(DashboardPayload):
    """Daily query quota snapshot."""

    @property
    def used_tokens(self) -> int:
        return _int(self._data.get("Queries Today"))

    @property
    def token_limit(self) -> int:
        return _int(self._data.get("Daily Limit"))

    @property
    def total_queries(self) -> int:
        return _int(self._data.get("Queries Total"))

    @property
    def plan_tier(self) -> str:
        return str(self._data.get("Plan Tier", "Unknown"))

    @property
    def burst_tokens(self) -> int:
        return _int(self._data.get("Burst Tokens Available"))

    @property
    def burst_token_limit(self) -> int:
        return _int(self._data.get("Burst Token Allowance"))

    @property
    def remaining_tokens(self) -> int:
        return max(0, self.token_limit - self.used_tokens)

    @property
    def usage_percentage(self) -> float:
        limit = self.token_limit
        return round(self.used_tokens / limit * 100, 2) if limit > 0 else 0.0

    def is_limit_exceeded(self) -> bool:
        return self.remaining_tokens <= 0

    def format(self) -> dict:
        return {
            "used": self.used_tokens,
            "limit": self.token_limit,
            "total": self.total_queries,
            "plan": self.plan_tier,
            "burst_available": self.burst_tokens,
            "burst_limit": self.burst_token_limit,
            "percentage": self.usage_percentage,
            "remaining": self.remaining_tokens,
        }


class QueryStatistics(DashboardPayload):
    """
    Rolling query history, keyed by day label ("TODAY", "DAY -1", ...).

    ``format(days)`` takes the first ``days`` entries in upstream order,
    clamped to 1..30, and skips TODAY, which is reported separately.
    """

    MAX_DAYS = 30

    @staticmethod
    def _counters(stats: dict) -> dict:
        return {name: _int(stats.get(wire)) for name, wire in QUERY_COUNTERS.items()}

    def today(self) -> Optional[dict]:
        stats = self._data.get("TODAY")
        return self._counters(stats) if isinstance(stats, dict) else None

    def format(self, days: int = 30) -> dict:
        days = min(max(days, 1), self.MAX_DAYS)

        window = list(self._data.items())[:days]
        day_rows = []
        totals = {name: 0 for name in QUERY_COUNTERS}

        for day, stats in window:
            if day == "TODAY" or not isinstance(stats, dict):
                continue
            row = {"day": day, **self._counters(stats)}
            day_rows.append(row)
            for name in QUERY_COUNTERS:
                totals[name] += row[name]

        total = totals["total_queries"]
        percentages = {}
        if total > 0:
            percentages = {
                name: round(value / total * 100, 2)
                for name, value in totals.items()
                if name != "total_queries"
            }

        threats = totals["proxies"] + totals["vpns"] + totals["disposable_emails"]
        return {
            "period": days,
            "days": day_rows,
            "totals": totals,
            "percentages": percentages,
            "today": self.today(),
            "summary": {
                "period_days": days,
                "active_days": sum(1 for row in day_rows if row["total_queries"] > 0),
                "total_queries": total,
                "detected_threats": threats,
                "detection_rate": round(threats / total * 100, 2) if total > 0 else 0,
                "average_daily_queries": round(total / days, 2),
            },
        }


@dataclass(frozen=True)
class Detection:
    time: str
    time_raw: str
    address: str
    type: str
    node: str
    tag: str
    country: str
    port: Optional[int]


class DetectionEntries(DashboardPayload):
    """Recent positive detections; entries live under numeric keys."""

    def entries(self) -> list[Detection]:
        detections = []
        for key, item in self._data.items():
            if not str(key).isdigit() or not isinstance(item, dict):
                continue
            port = item.get("port")
            detections.append(Detection(
                time=str(item.get("time formatted", "")),
                time_raw=str(item.get("time raw", "")),
                address=str(item.get("address", "")),
                type=str(item.get("detection type", "")),
                node=str(item.get("answering node", "")),
                tag=str(item.get("tag", "")),
                country=str(item.get("country", "")),
                port=_int(port) if port is not None else None,
            ))
        return detections

    @property
    def count(self) -> int:
        return len(self.entries())


@dataclass(frozen=True)
class TagSummary:
    tag: str
    total: int
    proxy: int
    vpn: int
    rule: int
    addresses: tuple


class TagEntries(DashboardPayload):
    """Query counts grouped by tag."""

    def entries(self) -> list[TagSummary]:
        summaries = []
        for tag, item in self._data.items():
            if not isinstance(item, dict):
                continue
            types = item.get("types") or {}
            addresses = item.get("addresses") or []
            summaries.append(TagSummary(
                tag=tag,
                total=_int(types.get("total")),
                proxy=_int(types.get("proxy")),
                vpn=_int(types.get("vpn")),
                rule=_int(types.get("rule")),
                addresses=tuple(addresses) if isinstance(addresses, (list, dict)) else (),
            ))
        return summaries

    @property
    def count(self) -> int:
        return len(self.entries())

    def all_addresses(self) -> list:
        """Every address across all tags, first occurrence order, no duplicates."""
        seen = {}
        for summary in self.entries():
            for address in summary.addresses:
                seen.setdefault(address, None)
        return list(seen)


class ListEntries(DashboardPayload):
    """Contents of a whitelist, blacklist or CORS origin list."""

    def entries(self) -> list[str]:
        if self.message == EMPTY_LIST_MESSAGE:
            return []

        addresses = self._data.get("addresses")
        if isinstance(addresses, list):
            return [str(a) for a in addresses]

        raw = self._data.get("Raw")
        if isinstance(raw, list):
            return [str(a) for a in raw if a]

        text = self._data.get("list")
        if isinstance(text, str) and text.strip():
            return text.strip().split("\n")

        return []

    @property
    def count(self) -> int:
        return len(self.entries())

    def is_empty(self) -> bool:
        return not self.entries()

    def format(self) -> dict:
        entries = self.entries()
        return {
            "entries": entries,
            "count": len(entries),
            "status": self.status,
            "message": self.message,
        }

    def __str__(self) -> str:
        return "\n".join(self.entries())
