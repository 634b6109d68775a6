# engine/scoring/analytics.py
"""
Agrégats sur les scores calculés — ZÉRO accès DB.

Reçoit les CalculatedScore déjà filtrés par le service (questionnaire,
configuration optionnelle) et retourne :
    total_scores, average_score, risk_distribution (5 niveaux),
    risk_percentage, high_risk_count, score_trends (1 point / jour),
    trend_direction

Appelé par : modules/scoring/service.py
"""
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List

import numpy as np

from mindtrack.engine.domain import enum_value
from mindtrack.shared.enums import HIGH_RISK_LEVELS, RiskLevel, TrendDirection

# Écart (en points de score) entre première et dernière journée
# en-dessous duquel la tendance est considérée stable
TREND_STABILITY_THRESHOLD = 1.0


def _day(moment: Any) -> date:
    if isinstance(moment, datetime):
        return moment.date()
    if isinstance(moment, date):
        return moment
    return datetime.fromisoformat(str(moment).replace("Z", "+00:00")).date()


def _trend_direction(trends: List[Dict]) -> TrendDirection:
    if len(trends) < 2:
        return TrendDirection.INSUFFICIENT_DATA
    delta = trends[-1]["average_score"] - trends[0]["average_score"]
    if abs(delta) < TREND_STABILITY_THRESHOLD:
        return TrendDirection.STABLE
    return TrendDirection.UP if delta > 0 else TrendDirection.DOWN


def compute_analytics(scores: Iterable[Any]) -> Dict:
    scores = list(scores)
    distribution = {level.value: 0 for level in RiskLevel}
    for score in scores:
        distribution[enum_value(score.risk_level)] = distribution.get(enum_value(score.risk_level), 0) + 1

    total = len(scores)
    values = np.array([float(s.normalized_score) for s in scores], dtype=float)
    average = round(float(np.mean(values)), 2) if total else 0.0

    by_day: Dict[date, List[float]] = defaultdict(list)
    for score in scores:
        by_day[_day(score.calculated_at)].append(float(score.normalized_score))

    trends = [
        {
            "date":          day.isoformat(),
            "average_score": round(float(np.mean(day_values)), 2),
            "count":         len(day_values),
        }
        for day, day_values in sorted(by_day.items())
    ]

    high_risk = sum(distribution[level.value] for level in HIGH_RISK_LEVELS)

    return {
        "total_scores":      total,
        "average_score":     average,
        "risk_distribution": distribution,
        "risk_percentage":   {
            level: round(count / total * 100, 2) if total else 0.0
            for level, count in distribution.items()
        },
        "high_risk_count":   high_risk,
        "score_trends":      trends,
        "trend_direction":   _trend_direction(trends).value,
    }
