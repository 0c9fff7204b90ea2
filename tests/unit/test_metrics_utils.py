"""
Tests for the shared metric aggregation core
"""
from collections import Counter

import pytest

from nectardesk_api.utils.metrics_utils import (
    MetricSample, MetricTotals, compute_aggregate, top_items
)


def sample(scorecard=None, duration=None, talk_time=None, waiting_time=None, strengths=None, improvements=None):
    analysis = {
        "scorecard": scorecard,
        "agent_performance": {
            "strengths": strengths or [],
            "areas_for_improvement": improvements or [],
        },
    }
    return MetricSample.from_parts(analysis, duration, talk_time, waiting_time)


class TestMetricSample:
    def test_skips_non_numeric_values(self):
        s = sample({"customer_service": 8, "product_knowledge": "high", "overall_score": None, "problem_solving": True})
        assert s.values == {"customer_service": 8.0}
        assert s.has_scorecard

    def test_no_analysis(self):
        s = MetricSample.from_parts(None)
        assert s.values == {}
        assert not s.has_scorecard

    def test_call_fields(self):
        s = sample({"overall_score": 7}, duration=300, talk_time=240, waiting_time="n/a")
        assert s.values["call_duration"] == 300.0
        assert s.values["talk_time"] == 240.0
        assert "waiting_time" not in s.values


class TestMetricTotals:
    def test_independent_denominators(self):
        totals = MetricTotals()
        totals.add(sample({"customer_service": 8, "overall_score": 6}))
        totals.add(sample({"customer_service": 6}))

        assert totals.call_count == 2
        assert totals.average("customer_service") == 7.0
        # Only the first sample had an overall score
        assert totals.average("overall_score") == 6.0
        assert totals.average("problem_solving") is None

    def test_averages_are_derived_not_stored(self):
        totals = MetricTotals(sums={"overall_score": 15.0}, counts={"overall_score": 2}, call_count=2)
        assert totals.averages()["overall_score"] == 7.5
        assert totals.averages()["overall_score"] == 7.5
        assert totals.sums == {"overall_score": 15.0}


class TestTopItems:
    def test_ties_keep_first_seen_order(self):
        counter = Counter()
        counter.update(["b", "a", "c"])
        counter.update(["a"])
        assert top_items(counter) == ["a", "b", "c"]

    def test_tied_tail_cut_in_first_seen_order(self):
        counter = Counter()
        for item, count in (("A", 5), ("B", 5), ("C", 3), ("D", 3), ("E", 3), ("F", 3)):
            counter.update([item] * count)
        assert top_items(counter) == ["A", "B", "C", "D", "E"]

    def test_limited_to_five(self):
        counter = Counter(["one", "two", "three", "four", "five", "six", "six"])
        result = top_items(counter)
        assert result == ["six", "one", "two", "three", "four"]


class TestComputeAggregate:
    def test_window_example(self):
        samples = [
            sample({"customer_service": 8, "product_knowledge": 7, "process_efficiency": 6,
                    "problem_solving": 7, "overall_score": 7}, duration=300, talk_time=250, waiting_time=50,
                   strengths=["Empathy", "Clear explanations"], improvements=["Hold time"]),
            sample({"customer_service": 6, "product_knowledge": 9, "process_efficiency": 8,
                    "problem_solving": 9, "overall_score": 8}, duration=500,
                   strengths=["Empathy"], improvements=["Hold time", "Closing"]),
            sample(None, duration=100),
        ]

        result = compute_aggregate(samples)

        assert result.call_count == 3
        assert result.average_scores["customer_service"] == 7.0
        assert result.average_scores["product_knowledge"] == 8.0
        assert result.average_scores["overall_score"] == 7.5
        assert result.avg_call_duration == pytest.approx(300.0)
        assert result.avg_talk_time == 250.0
        assert result.avg_waiting_time == 50.0
        assert result.common_strengths == ["Empathy", "Clear explanations"]
        assert result.common_areas_for_improvement == ["Hold time", "Closing"]

    def test_empty_window(self):
        result = compute_aggregate([])
        assert result.call_count == 0
        assert all(value is None for value in result.average_scores.values())
        assert result.avg_call_duration is None
        assert result.common_strengths == []
