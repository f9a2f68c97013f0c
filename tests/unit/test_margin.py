"""
Unit Tests - Weighted Margin
"""
import pytest

from retail_brief.analytics.margin import MarginConfidence, compute_weighted_margin
from retail_brief.config import MarginSettings


@pytest.fixture
def margin_settings() -> MarginSettings:
    return MarginSettings(high_confidence_coverage=60, min_skus_with_margin=1)


class TestWeightedMargin:
    """Tests for compute_weighted_margin"""

    def test_partial_coverage(self, sales_fact_factory, margin_settings):
        """Only revenue with a known margin contributes to the average"""
        facts = {
            "A": sales_fact_factory("A", units_sold=40, revenue=400, unit_cost=7.5),
            "B": sales_fact_factory("B", units_sold=60, revenue=600),
        }

        result = compute_weighted_margin(facts, settings=margin_settings)

        assert result.is_available
        assert result.average_margin_percent == 25.0
        assert result.total_revenue == 1000
        assert result.revenue_with_margin == 400
        assert result.total_margin_dollars == 100
        assert result.sku_count_with_margin == 1
        assert result.coverage_percent == 40
        assert result.confidence == MarginConfidence.PARTIAL
        assert result.reason is None

    def test_revenue_weighting(self, sales_fact_factory, margin_settings):
        """High-revenue SKUs dominate the average"""
        facts = [
            sales_fact_factory("A", units_sold=20, revenue=500, unit_cost=10),
            sales_fact_factory("B", units_sold=30, revenue=600, unit_cost=5),
        ]

        result = compute_weighted_margin(facts, settings=margin_settings)

        assert result.average_margin_percent == 68.18
        assert result.coverage_percent == 100
        assert result.confidence == MarginConfidence.HIGH

    def test_no_sales(self, margin_settings):
        """Empty table yields an explicit unavailable result"""
        result = compute_weighted_margin({}, settings=margin_settings)

        assert not result.is_available
        assert result.reason == "No sales in period"
        assert result.confidence == MarginConfidence.NONE
        assert result.coverage_percent == 0

    def test_no_cost_data(self, sales_fact_factory, margin_settings):
        """Sales without any cost data report why the margin is missing"""
        facts = [
            sales_fact_factory("A", units_sold=2, revenue=20),
            sales_fact_factory("B", units_sold=3, revenue=30),
        ]

        result = compute_weighted_margin(facts, settings=margin_settings)

        assert result.average_margin_percent is None
        assert result.reason == "No sales with cost data in period (0 of 2 SKUs have a computable margin)"
        assert result.total_revenue == 50

    def test_minimum_sku_count(self, sales_fact_factory):
        """Too few SKUs with a margin is reported as insufficient data"""
        settings = MarginSettings(min_skus_with_margin=5)
        facts = [sales_fact_factory("A", units_sold=2, revenue=20, unit_cost=4)]

        result = compute_weighted_margin(facts, settings=settings)

        assert result.average_margin_percent is None
        assert result.reason.startswith("Insufficient data (1 SKUs with valid margin, need 5")

    def test_zero_revenue_facts_ignored(self, sales_fact_factory, margin_settings):
        """Facts with unknown revenue add nothing to either total"""
        facts = [
            sales_fact_factory("A", units_sold=4, revenue=0.0, unit_cost=3),
            sales_fact_factory("B", units_sold=10, revenue=100, unit_cost=6),
        ]

        result = compute_weighted_margin(facts, settings=margin_settings)

        assert result.total_revenue == 100
        assert result.average_margin_percent == 40.0
        assert result.coverage_percent == 100

    def test_negative_margin_is_reported(self, sales_fact_factory, margin_settings):
        """Selling below cost produces a negative average, not an error"""
        facts = [sales_fact_factory("A", units_sold=10, revenue=80, unit_cost=10)]

        result = compute_weighted_margin(facts, settings=margin_settings)

        assert result.average_margin_percent == -25.0

    def test_coverage_grows_with_costed_revenue(self, sales_fact_factory, margin_settings):
        """Adding cost data to a SKU never lowers coverage"""
        uncosted = [
            sales_fact_factory("A", units_sold=10, revenue=100, unit_cost=5),
            sales_fact_factory("B", units_sold=10, revenue=300),
        ]
        costed = [
            uncosted[0],
            sales_fact_factory("B", units_sold=10, revenue=300, unit_cost=20),
        ]

        before = compute_weighted_margin(uncosted, settings=margin_settings)
        after = compute_weighted_margin(costed, settings=margin_settings)

        assert before.coverage_percent == 25
        assert after.coverage_percent == 100
        assert after.confidence == MarginConfidence.HIGH

    def test_to_dict(self, sales_fact_factory, margin_settings):
        """Serialized result uses plain values"""
        facts = [sales_fact_factory("A", units_sold=10, revenue=100, unit_cost=5)]

        data = compute_weighted_margin(facts, settings=margin_settings).to_dict()

        assert data["confidence"] == "high"
        assert data["average_margin_percent"] == 50.0

    def test_rejects_non_fact_items(self, margin_settings):
        with pytest.raises(TypeError):
            compute_weighted_margin([{"sku": "A"}], settings=margin_settings)

    def test_rejects_none(self, margin_settings):
        with pytest.raises(TypeError):
            compute_weighted_margin(None, settings=margin_settings)
