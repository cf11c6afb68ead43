"""
Ranking and Risk Scoring
Top-N selection and the balance/recency payment-risk score.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

TOP_N = 10

# Score components, each capped at 50
BALANCE_POINTS_PER_KES = 1 / 1000        # 1 point per KES 1,000 owed
BALANCE_POINTS_CAP = 50.0
GRACE_DAYS = 30                          # no recency points inside the grace period
RECENCY_POINTS_CAP = 50.0

HIGH_RISK_THRESHOLD = 70.0
MEDIUM_RISK_THRESHOLD = 40.0

# Recency used for tenants who have never paid
NO_PAYMENT_DAYS = 999


# ═══════════════════════════════════════════════════════════════════════════════
# RANKING
# ═══════════════════════════════════════════════════════════════════════════════

def rank_descending(items: Iterable[Any], key: Callable[[Any], float]) -> List[Any]:
    """Sort descending by key; ties keep their input order."""
    return sorted(items, key=key, reverse=True)


def top_n(items: Iterable[Any], key: Callable[[Any], float], limit: int = TOP_N) -> List[Any]:
    return rank_descending(items, key)[:limit]


# ═══════════════════════════════════════════════════════════════════════════════
# RISK
# ═══════════════════════════════════════════════════════════════════════════════

def risk_score(balance: float, days_since_last_payment: int) -> float:
    score = 0.0
    if balance > 0:
        score += min(BALANCE_POINTS_CAP, balance * BALANCE_POINTS_PER_KES)
    score += min(RECENCY_POINTS_CAP, max(0, days_since_last_payment - GRACE_DAYS))
    return score


def classify_risk(score: float) -> Optional[str]:
    if score >= HIGH_RISK_THRESHOLD:
        return "high"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "medium"
    return None


def split_risk_tiers(entries: Iterable[Dict[str, Any]], score_key: str = "risk_score") -> Dict[str, List[Dict[str, Any]]]:
    """Partition scored entries into high/medium tiers; low scores are left out."""
    ranked = rank_descending(entries, key=lambda e: e[score_key])
    tiers: Dict[str, List[Dict[str, Any]]] = {"high_risk": [], "medium_risk": []}
    for entry in ranked:
        tier = classify_risk(entry[score_key])
        if tier == "high":
            tiers["high_risk"].append(entry)
        elif tier == "medium":
            tiers["medium_risk"].append(entry)
    return tiers
