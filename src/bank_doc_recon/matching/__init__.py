"""Matching engine, pipeline stages and rules."""

from .engine import ReconciliationEngine
from .pipeline import classify_results, generate_candidates, score_candidates
from .rules import (
    HARD_RULES,
    RULE_REGISTRY,
    SOFT_RULES,
    AmountStrictRule,
    CurrencyMatchRule,
    DateWindowRule,
    MatchingRule,
    NameSimilarityRule,
    PartialPaymentRule,
    ReferenceMatchRule,
)

__all__ = [
    "ReconciliationEngine",
    "generate_candidates",
    "score_candidates",
    "classify_results",
    "MatchingRule",
    "AmountStrictRule",
    "CurrencyMatchRule",
    "DateWindowRule",
    "NameSimilarityRule",
    "ReferenceMatchRule",
    "PartialPaymentRule",
    "HARD_RULES",
    "SOFT_RULES",
    "RULE_REGISTRY",
]
