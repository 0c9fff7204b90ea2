"""
Agent metric aggregation shared by the full recompute and the period rollups
"""
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

SCORE_FIELDS = (
    "customer_service",
    "product_knowledge",
    "process_efficiency",
    "problem_solving",
    "overall_score",
)
CALL_FIELDS = ("call_duration", "talk_time", "waiting_time")
METRIC_FIELDS = SCORE_FIELDS + CALL_FIELDS

TOP_ITEMS_LIMIT = 5


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _strings(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, str) and v.strip()]


@dataclass
class MetricSample:
    """Numeric values and free-text notes one transcript contributes"""
    values: Dict[str, float] = field(default_factory=dict)
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    has_scorecard: bool = False

    @classmethod
    def from_parts(
        cls,
        analysis: Optional[Dict[str, Any]],
        duration: Any = None,
        talk_time: Any = None,
        waiting_time: Any = None
    ) -> "MetricSample":
        analysis = analysis or {}
        scorecard = analysis.get("scorecard")
        performance = analysis.get("agent_performance") or {}

        values: Dict[str, float] = {}
        if isinstance(scorecard, dict):
            for name in SCORE_FIELDS:
                if _is_number(scorecard.get(name)):
                    values[name] = float(scorecard[name])

        for name, value in zip(CALL_FIELDS, (duration, talk_time, waiting_time)):
            if _is_number(value):
                values[name] = float(value)

        return cls(
            values=values,
            strengths=_strings(performance.get("strengths")),
            areas_for_improvement=_strings(performance.get("areas_for_improvement")),
            has_scorecard=isinstance(scorecard, dict),
        )

    @classmethod
    def from_transcript(cls, transcript: Any) -> "MetricSample":
        return cls.from_parts(
            transcript.analysis,
            transcript.duration,
            transcript.talk_time,
            transcript.waiting_time,
        )


@dataclass
class MetricTotals:
    """
    Raw per-field sums and counts.

    Each field has its own denominator: a sample missing a value for one
    field leaves that field's count alone.
    """
    sums: Dict[str, float] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    call_count: int = 0

    def add(self, sample: MetricSample) -> None:
        self.call_count += 1
        for name, value in sample.values.items():
            self.sums[name] = self.sums.get(name, 0.0) + value
            self.counts[name] = self.counts.get(name, 0) + 1

    def average(self, name: str) -> Optional[float]:
        count = self.counts.get(name, 0)
        if not count:
            return None
        return self.sums.get(name, 0.0) / count

    def averages(self) -> Dict[str, Optional[float]]:
        return {name: self.average(name) for name in METRIC_FIELDS}

    def summary(self) -> Dict[str, Any]:
        """Averages shaped like an agent's period summary"""
        return {
            "call_count": self.call_count,
            "average_scores": {name: self.average(name) for name in SCORE_FIELDS},
            "avg_call_duration": self.average("call_duration"),
            "avg_talk_time": self.average("talk_time"),
            "avg_waiting_time": self.average("waiting_time"),
        }


@dataclass
class AggregateMetrics:
    call_count: int
    average_scores: Dict[str, Optional[float]]
    avg_call_duration: Optional[float]
    avg_talk_time: Optional[float]
    avg_waiting_time: Optional[float]
    common_strengths: List[str]
    common_areas_for_improvement: List[str]


def top_items(counter: Counter, limit: int = TOP_ITEMS_LIMIT) -> List[str]:
    """Most frequent items; equal counts keep first-seen order"""
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
    return [item for item, _ in ranked[:limit]]


def compute_aggregate(samples: Iterable[MetricSample]) -> AggregateMetrics:
    """Aggregate a window of samples into per-field averages and common notes"""
    totals = MetricTotals()
    strengths: Counter = Counter()
    improvements: Counter = Counter()

    for sample in samples:
        totals.add(sample)
        strengths.update(sample.strengths)
        improvements.update(sample.areas_for_improvement)

    summary = totals.summary()
    return AggregateMetrics(
        call_count=summary["call_count"],
        average_scores=summary["average_scores"],
        avg_call_duration=summary["avg_call_duration"],
        avg_talk_time=summary["avg_talk_time"],
        avg_waiting_time=summary["avg_waiting_time"],
        common_strengths=top_items(strengths),
        common_areas_for_improvement=top_items(improvements),
    )
