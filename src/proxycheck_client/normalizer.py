"""
Response normalizer.

Turns a decoded upstream payload into an IPRecord or EmailRecord. Only the
fields the client knows about are read; everything else stays available
through ``record.raw``.
"""

from typing import Any, Optional

from .enums import BlockReason, BlockStatus, ErrorCode
from .exceptions import MalformedResponseError
from .models import (
    ATTACK_HISTORY_FIELDS,
    BlockDecision,
    BlockDetails,
    Continent,
    Coordinates,
    Country,
    Currency,
    Devices,
    EmailRecord,
    Geography,
    IPRecord,
    NormalizedRecord,
    Operator,
    OperatorDetails,
    Region,
)
from .validators import is_email


# Top-level keys that never identify the checked subject.
RESERVED_KEYS = frozenset({"status", "message", "node", "query time"})

# Decision fields embedded into payloads before they are cached.
DECISION_KEYS = frozenset({"block", "block_reason", "block_details"})


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class ResponseNormalizer:
    """Builds typed records from raw upstream payloads."""

    def identify_subject(self, payload: dict) -> str:
        """
        Find the single key that names the checked subject.

        Raises:
            MalformedResponseError: If zero or several candidate keys exist,
                or the subject entry is not an object
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                code=ErrorCode.MALFORMED_RESPONSE.value,
                message="Response is not a JSON object",
                details={"type": type(payload).__name__},
            )

        candidates = [
            key for key in payload
            if key not in RESERVED_KEYS and key not in DECISION_KEYS
        ]
        if len(candidates) != 1:
            raise MalformedResponseError(
                code=ErrorCode.MALFORMED_RESPONSE.value,
                message=f"Expected exactly one subject in response, found {len(candidates)}",
                details={"candidates": candidates, "status": payload.get("status")},
            )

        subject = candidates[0]
        if not isinstance(payload[subject], dict):
            raise MalformedResponseError(
                code=ErrorCode.MALFORMED_RESPONSE.value,
                message=f"Subject entry for {subject} is not an object",
                details={"subject": subject},
            )
        return subject

    def normalize(self, payload: dict) -> NormalizedRecord:
        """
        Normalize a single-subject payload.

        Email subjects (containing '@') become EmailRecord, everything else
        IPRecord. An embedded block decision, if present, is restored.
        """
        subject = self.identify_subject(payload)
        data = payload[subject]
        common = {
            "subject": subject,
            "status": _as_str(payload.get("status")),
            "message": _as_str(payload.get("message")),
            "node": _as_str(payload.get("node")),
            "query_time": self._query_time(payload.get("query time")),
            "decision": self.read_decision(payload),
            "raw": payload,
        }

        if is_email(subject):
            return EmailRecord(
                **common,
                is_disposable=(
                    data["disposable"] == "yes" if "disposable" in data else None
                ),
            )

        return IPRecord(
            **common,
            is_proxy=data.get("proxy") == "yes",
            proxy_type=_as_str(data.get("type")),
            risk_score=_as_int(data.get("risk")),
            provider=_as_str(data.get("provider")),
            organisation=_as_str(data.get("organisation")),
            hostname=_as_str(data.get("hostname")),
            ip_range=_as_str(data.get("range")),
            operator=self._operator(data),
            operator_details=self._operator_details(data),
            geography=self._geography(data),
            attack_history=self._attack_history(data),
            port=_as_int(data.get("port")),
            last_seen=_as_str(data.get("seen")),
            devices=self._devices(data),
        )

    def read_decision(self, payload: dict) -> Optional[BlockDecision]:
        """Restore a decision embedded by the policy engine, if any."""
        if "block" not in payload:
            return None

        try:
            block = BlockStatus(payload["block"])
        except ValueError:
            return None
        try:
            reason = BlockReason(payload.get("block_reason", BlockReason.NONE.value))
        except ValueError:
            reason = BlockReason.NONE

        details = None
        raw_details = payload.get("block_details")
        if isinstance(raw_details, dict):
            details = BlockDetails(
                operator_name=str(raw_details.get("name", "")),
                anonymity=str(raw_details.get("anonymity", "")),
                popularity=str(raw_details.get("popularity", "")),
            )
        return BlockDecision(block=block, reason=reason, details=details)

    @staticmethod
    def _query_time(value: Any) -> Optional[float]:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.replace("s", "")
        return _as_float(value)

    @staticmethod
    def _operator(data: dict) -> Optional[Operator]:
        if "provider" not in data and "asn" not in data:
            return None
        return Operator(name=_as_str(data.get("provider")), asn=_as_str(data.get("asn")))

    @staticmethod
    def _operator_details(data: dict) -> Optional[OperatorDetails]:
        operator = data.get("operator")
        if not isinstance(operator, dict):
            return None
        protocols = operator.get("protocols") or []
        policies = operator.get("policies") or {}
        return OperatorDetails(
            name=_as_str(operator.get("name")),
            url=_as_str(operator.get("url")),
            anonymity=_as_str(operator.get("anonymity")),
            popularity=_as_str(operator.get("popularity")),
            protocols=tuple(protocols) if isinstance(protocols, list) else (),
            policies=dict(policies) if isinstance(policies, dict) else {},
        )

    @staticmethod
    def _geography(data: dict) -> Optional[Geography]:
        continent = None
        if "continent" in data:
            continent = Continent(
                name=_as_str(data.get("continent")),
                code=_as_str(data.get("continentcode")),
            )

        country = None
        if "country" in data:
            country = Country(
                name=_as_str(data.get("country")),
                code=_as_str(data.get("isocode")),
                is_eu=data.get("europe") in (1, True, "1", "yes"),
            )

        region = None
        if "region" in data:
            region = Region(
                name=_as_str(data.get("region")),
                code=_as_str(data.get("regioncode")),
            )

        coordinates = None
        latitude = _as_float(data.get("latitude"))
        longitude = _as_float(data.get("longitude"))
        if latitude is not None and longitude is not None:
            coordinates = Coordinates(latitude=latitude, longitude=longitude)

        currency = None
        raw_currency = data.get("currency")
        if isinstance(raw_currency, dict):
            currency = Currency(
                code=_as_str(raw_currency.get("code")),
                name=_as_str(raw_currency.get("name")),
                symbol=_as_str(raw_currency.get("symbol")),
            )

        geography = Geography(
            continent=continent,
            country=country,
            region=region,
            city=_as_str(data.get("city")),
            postcode=_as_str(data.get("postcode")),
            coordinates=coordinates,
            timezone=_as_str(data.get("timezone")),
            currency=currency,
        )
        if geography == Geography():
            return None
        return geography

    @staticmethod
    def _attack_history(data: dict) -> Optional[dict[str, int]]:
        history = {}
        for name in ATTACK_HISTORY_FIELDS:
            value = _as_int(data.get(name))
            if value is not None:
                history[name] = value
        return history or None

    @staticmethod
    def _devices(data: dict) -> Optional[Devices]:
        devices = data.get("devices")
        if not isinstance(devices, dict):
            return None
        return Devices(
            address=_as_int(devices.get("address")) or 0,
            subnet=_as_int(devices.get("subnet")) or 0,
        )
