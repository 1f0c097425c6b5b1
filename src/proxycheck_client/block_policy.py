"""
Block Policy Engine.

This module implements the local block decision applied on top of the
upstream answer. Rules run in a fixed order:

1. Email subjects carrying a disposable flag are decided by that flag alone.
2. Proxy/VPN detections block, with reason "vpn" or "proxy".
3. A risk score above 70 blocks; the reason only changes if still "none".
4. Country rules overlay the result:
   a. no country data forces "na", overriding steps 2-3
   b. a blocked country escalates "no" to "yes"
   c. an allowed country resets any "yes" back to "no"
"""

from dataclasses import replace
from typing import Optional

from .enums import BlockReason, BlockStatus
from .models import (
    BlockDecision,
    BlockDetails,
    EmailRecord,
    IPRecord,
    NormalizedRecord,
)
from .parameters import CountryRuleSet, ParameterSet


class BlockPolicyEngine:
    """
    Evaluates block decisions for normalized records.

    The engine holds no state; the same record and parameters always give
    the same decision.
    """

    RISK_THRESHOLD = 70

    def evaluate(
        self,
        record: NormalizedRecord,
        parameters: ParameterSet,
        country_rules: Optional[CountryRuleSet] = None,
    ) -> BlockDecision:
        """
        Compute the block decision for a record.

        Args:
            record: Normalized IP or email record
            parameters: Active parameter set
            country_rules: Rules to apply; defaults to the parameter set's

        Returns:
            BlockDecision with status, reason and optional operator details
        """
        rules = country_rules if country_rules is not None else parameters.country_rules

        if isinstance(record, EmailRecord):
            return self._evaluate_email(record)

        decision = BlockDecision(block=BlockStatus.NO, reason=BlockReason.NONE)
        decision = self._apply_proxy_rule(record, decision)
        decision = self._apply_risk_rule(record, decision)
        return self._apply_country_rules(record, decision, rules)

    def _evaluate_email(self, record: EmailRecord) -> BlockDecision:
        if record.is_disposable is None:
            # No flag and no IP signals: nothing to decide on.
            return BlockDecision(block=BlockStatus.NA, reason=BlockReason.NOT_APPLICABLE)
        if record.is_disposable:
            return BlockDecision(block=BlockStatus.YES, reason=BlockReason.DISPOSABLE)
        return BlockDecision(block=BlockStatus.NO, reason=BlockReason.NONE)

    def _apply_proxy_rule(self, record: IPRecord, decision: BlockDecision) -> BlockDecision:
        if not record.is_proxy:
            return decision

        is_vpn = (record.proxy_type or "").lower() == "vpn"
        details = None
        if record.operator_details is not None:
            operator = record.operator_details
            details = BlockDetails(
                operator_name=operator.name or "",
                anonymity=operator.anonymity or "",
                popularity=operator.popularity or "",
            )
        return BlockDecision(
            block=BlockStatus.YES,
            reason=BlockReason.VPN if is_vpn else BlockReason.PROXY,
            details=details,
        )

    def _apply_risk_rule(self, record: IPRecord, decision: BlockDecision) -> BlockDecision:
        if record.risk_score is None or record.risk_score <= self.RISK_THRESHOLD:
            return decision

        # Proxy/VPN reasons are never downgraded to high_risk.
        reason = decision.reason
        if reason == BlockReason.NONE:
            reason = BlockReason.HIGH_RISK
        return replace(decision, block=BlockStatus.YES, reason=reason)

    def _apply_country_rules(
        self,
        record: IPRecord,
        decision: BlockDecision,
        rules: CountryRuleSet,
    ) -> BlockDecision:
        country = record.country
        if country is None or country.name is None:
            # Overrides earlier proxy/risk verdicts as well; operator details stay.
            return replace(decision, block=BlockStatus.NA, reason=BlockReason.NOT_APPLICABLE)

        if decision.block == BlockStatus.NO and rules.blocked:
            if rules.is_blocked(country.name, country.code):
                decision = replace(decision, block=BlockStatus.YES, reason=BlockReason.COUNTRY)

        if decision.block == BlockStatus.YES and rules.allowed:
            if rules.is_allowed(country.name, country.code):
                decision = replace(decision, block=BlockStatus.NO, reason=BlockReason.NONE)

        return decision

    def apply(
        self,
        record: NormalizedRecord,
        parameters: ParameterSet,
    ) -> tuple[NormalizedRecord, dict]:
        """
        Evaluate a record and embed the decision.

        Returns:
            Tuple of (record carrying the decision, payload carrying the
            decision fields, ready to be cached)
        """
        decision = self.evaluate(record, parameters)
        payload = self.embed(record.raw, decision)
        return replace(record, decision=decision, raw=payload), payload

    @staticmethod
    def embed(payload: dict, decision: BlockDecision) -> dict:
        """Return a copy of ``payload`` with the decision fields added."""
        embedded = {
            key: value for key, value in payload.items()
            if key not in ("block", "block_reason", "block_details")
        }
        embedded["block"] = decision.block.value
        embedded["block_reason"] = decision.reason.value
        if decision.details is not None:
            embedded["block_details"] = {
                "name": decision.details.operator_name,
                "anonymity": decision.details.anonymity,
                "popularity": decision.details.popularity,
            }
        return embedded
