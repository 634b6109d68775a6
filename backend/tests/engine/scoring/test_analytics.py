# tests/engine/scoring/test_analytics.py
"""
Tests unitaires pour engine.scoring.analytics.compute_analytics()

Couverture :
    - Liste vide → zéros, distribution complète, insufficient_data
    - Moyenne, distribution et pourcentages par niveau de risque
    - high_risk_count (high + critical)
    - Tendances journalières et direction (up / down / stable)
"""
import pytest
from datetime import datetime, timezone

from mindtrack.engine.scoring.analytics import TREND_STABILITY_THRESHOLD, compute_analytics
from tests.conftest import make_calculated_score

pytestmark = pytest.mark.engine


def _at(day: int, hour: int = 10) -> datetime:
    return datetime(2025, 3, day, hour, tzinfo=timezone.utc)


class TestComputeAnalytics:
    def test_vide(self):
        analytics = compute_analytics([])
        assert analytics["total_scores"] == 0
        assert analytics["average_score"] == 0.0
        assert analytics["risk_distribution"] == {
            "none": 0, "low": 0, "medium": 0, "high": 0, "critical": 0,
        }
        assert analytics["high_risk_count"] == 0
        assert analytics["score_trends"] == []
        assert analytics["trend_direction"] == "insufficient_data"

    def test_distribution_et_moyenne(self):
        scores = [
            make_calculated_score(normalized_score=3, risk_level="low"),
            make_calculated_score(normalized_score=11, risk_level="high"),
            make_calculated_score(normalized_score=18, risk_level="critical"),
            make_calculated_score(normalized_score=12, risk_level="high"),
        ]
        analytics = compute_analytics(scores)

        assert analytics["total_scores"] == 4
        assert analytics["average_score"] == 11.0
        assert analytics["risk_distribution"]["high"] == 2
        assert analytics["risk_percentage"]["high"] == 50.0
        assert analytics["risk_percentage"]["low"] == 25.0
        assert analytics["high_risk_count"] == 3

    def test_moyenne_arrondie(self):
        scores = [make_calculated_score(normalized_score=v) for v in (1, 2, 2)]
        assert compute_analytics(scores)["average_score"] == 1.67

    def test_tendances_par_jour(self):
        scores = [
            make_calculated_score(normalized_score=4, calculated_at=_at(1, 9)),
            make_calculated_score(normalized_score=6, calculated_at=_at(1, 17)),
            make_calculated_score(normalized_score=12, calculated_at=_at(3)),
        ]
        analytics = compute_analytics(scores)

        assert analytics["score_trends"] == [
            {"date": "2025-03-01", "average_score": 5.0, "count": 2},
            {"date": "2025-03-03", "average_score": 12.0, "count": 1},
        ]
        assert analytics["trend_direction"] == "up"

    def test_tendance_baisse(self):
        scores = [
            make_calculated_score(normalized_score=15, calculated_at=_at(1)),
            make_calculated_score(normalized_score=5, calculated_at=_at(2)),
        ]
        assert compute_analytics(scores)["trend_direction"] == "down"

    def test_tendance_stable(self):
        scores = [
            make_calculated_score(normalized_score=10, calculated_at=_at(1)),
            make_calculated_score(normalized_score=10 + TREND_STABILITY_THRESHOLD / 2, calculated_at=_at(2)),
        ]
        assert compute_analytics(scores)["trend_direction"] == "stable"

    def test_un_seul_jour(self):
        scores = [make_calculated_score(calculated_at=_at(1)), make_calculated_score(calculated_at=_at(1, 11))]
        assert compute_analytics(scores)["trend_direction"] == "insufficient_data"

    def test_date_iso_texte(self):
        scores = [make_calculated_score(calculated_at="2025-03-04T08:00:00Z")]
        assert compute_analytics(scores)["score_trends"][0]["date"] == "2025-03-04"
