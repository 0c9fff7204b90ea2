"""
Tests for agent performance recompute, period rollups and trends
"""
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from nectardesk_api.core.exceptions import NotFoundError
from nectardesk_api.models import AgentPerformance
from nectardesk_api.services.analytics_service import AgentAnalyticsService

SCORES_A = {"customer_service": 8, "product_knowledge": 7, "process_efficiency": 6,
            "problem_solving": 7, "overall_score": 7}
SCORES_B = {"customer_service": 6, "product_knowledge": 9, "process_efficiency": 8,
            "problem_solving": 9, "overall_score": 8}


@pytest.fixture
def organization(make_organization):
    return make_organization()


@pytest.fixture
def agent(make_agent, organization):
    return make_agent(organization)


def bucket_snapshot(db):
    rows = db.query(AgentPerformance).order_by(
        AgentPerformance.agent_id, AgentPerformance.period_type, AgentPerformance.period_key
    ).all()
    return [
        (row.agent_id, row.period_type, row.period_key, row.call_count, row.metric_sums, row.metric_counts, row.total_duration)
        for row in rows
    ]


class TestFullRecompute:
    async def test_writes_current_period(self, db, organization, agent, make_transcript):
        now = datetime.utcnow()
        make_transcript(organization, agent, SCORES_A, created_at=now - timedelta(days=3), duration=300,
                        strengths=["Empathy"], improvements=["Hold time"])
        make_transcript(organization, agent, SCORES_B, created_at=now - timedelta(days=2), duration=500,
                        strengths=["Empathy", "Product depth"])
        make_transcript(organization, agent, created_at=now - timedelta(days=1), duration=100)
        # Outside the default window
        make_transcript(organization, agent, {"overall_score": 1}, created_at=now - timedelta(days=45))

        service = AgentAnalyticsService(db)
        metrics = await service.update_agent_performance_metrics(agent.id)

        assert metrics is not None
        current = metrics["current_period"]
        assert current["call_count"] == 3
        assert current["average_scores"]["overall_score"] == 7.5
        assert current["average_scores"]["customer_service"] == 7.0
        assert current["avg_call_duration"] == pytest.approx(300.0)
        assert current["avg_talk_time"] is None
        assert metrics["historical"] == []

        db.refresh(agent)
        assert agent.current_period["call_count"] == 3
        assert agent.performance_updated_at is not None

    async def test_empty_window_leaves_metrics_untouched(self, db, agent):
        service = AgentAnalyticsService(db)
        assert await service.update_agent_performance_metrics(agent.id) is None

        db.refresh(agent)
        assert agent.current_period is None
        assert agent.performance_updated_at is None

    async def test_unknown_agent(self, db):
        service = AgentAnalyticsService(db)
        with pytest.raises(NotFoundError):
            await service.update_agent_performance_metrics(uuid4())

    async def test_historical_snapshot_defaults(self, db, organization, agent, make_transcript):
        make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 5, 10),
                        strengths=["Empathy"], improvements=["Closing"])
        service = AgentAnalyticsService(db)

        metrics = await service.update_agent_performance_metrics(
            agent.id, start_date=datetime(2024, 5, 1), end_date=datetime(2024, 5, 31), save_historical=True
        )

        snapshot = metrics["historical"][0]
        assert snapshot["period_name"] == "May 2024"
        assert snapshot["common_strengths"] == ["Empathy"]
        assert snapshot["common_areas_for_improvement"] == ["Closing"]
        assert snapshot["call_count"] == 1

    async def test_historical_capped_newest_first(self, db, organization, agent, make_transcript):
        make_transcript(organization, agent, SCORES_A, created_at=datetime.utcnow() - timedelta(days=1))
        service = AgentAnalyticsService(db)

        for i in range(1, 14):
            await service.update_agent_performance_metrics(agent.id, save_historical=True, period_name=f"P{i}")

        db.refresh(agent)
        names = [entry["period_name"] for entry in agent.historical]
        assert len(names) == 12
        assert names[0] == "P13"
        assert names[-1] == "P2"


class TestUpdateAll:
    async def test_counts_updated_and_skipped(self, db, organization, make_agent, make_transcript):
        busy = make_agent(organization)
        make_agent(organization)  # no transcripts
        retired = make_agent(organization, status="inactive")
        make_transcript(organization, busy, SCORES_A, created_at=datetime.utcnow() - timedelta(days=1))
        make_transcript(organization, retired, SCORES_A, created_at=datetime.utcnow() - timedelta(days=1))

        service = AgentAnalyticsService(db)
        result = await service.update_all_agent_metrics(organization.id)

        assert result == {"success": True, "agents_updated": 1, "agents_failed": 0, "agents_skipped": 1}
        db.refresh(retired)
        assert retired.current_period is None

    async def test_one_failing_agent_does_not_stop_the_rest(
        self, db, organization, make_agent, make_transcript, monkeypatch
    ):
        broken, healthy = make_agent(organization), make_agent(organization)
        for agent in (broken, healthy):
            make_transcript(organization, agent, SCORES_A, created_at=datetime.utcnow() - timedelta(days=1))
        broken_id, healthy_id = broken.id, healthy.id

        service = AgentAnalyticsService(db)
        recompute = service.update_agent_performance_metrics

        async def flaky(agent_id, **kwargs):
            if agent_id == broken_id:
                raise RuntimeError("metrics store unavailable")
            return await recompute(agent_id, **kwargs)

        monkeypatch.setattr(service, "update_agent_performance_metrics", flaky)
        result = await service.update_all_agent_metrics(organization.id)

        assert result == {"success": True, "agents_updated": 1, "agents_failed": 1, "agents_skipped": 0}
        db.expire_all()
        assert db.get(type(healthy), healthy_id).current_period["call_count"] == 1
        assert db.get(type(broken), broken_id).current_period is None

    async def test_only_target_organization(self, db, make_organization, make_agent, make_transcript):
        org_a, org_b = make_organization(), make_organization()
        agent_b = make_agent(org_b)
        make_transcript(org_b, agent_b, SCORES_A, created_at=datetime.utcnow() - timedelta(days=1))

        service = AgentAnalyticsService(db)
        result = await service.update_all_agent_metrics(org_a.id)

        assert result["agents_updated"] == 0
        db.refresh(agent_b)
        assert agent_b.current_period is None


class TestOrganizationPerformance:
    async def test_sorted_by_overall_score(self, db, organization, make_agent):
        low = make_agent(organization, current_period={"call_count": 3, "average_scores": {"overall_score": 5.0}})
        high = make_agent(organization, current_period={"call_count": 1, "average_scores": {"overall_score": 9.0}})
        unscored = make_agent(organization)

        service = AgentAnalyticsService(db)
        agents = await service.get_organization_agent_performance(organization.id)
        assert [a.id for a in agents] == [high.id, low.id, unscored.id]

        by_calls = await service.get_organization_agent_performance(organization.id, sort_by="call_count")
        assert by_calls[0].id == low.id

        limited = await service.get_organization_agent_performance(organization.id, limit=1)
        assert len(limited) == 1


class TestIncrementalRollup:
    async def test_creates_all_period_buckets(self, db, organization, agent, make_transcript):
        transcript = make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 5, 10, 15, 0),
                                     duration=120)
        service = AgentAnalyticsService(db)

        result = await service.record_transcript(transcript)

        assert result["success"]
        assert result["periods"] == {
            "daily": "2024-05-10",
            "weekly": "2024-W19",
            "monthly": "2024-05",
            "quarterly": "2024-Q2",
        }
        buckets = db.query(AgentPerformance).filter(AgentPerformance.agent_id == agent.id).all()
        assert len(buckets) == 4
        assert all(bucket.call_count == 1 for bucket in buckets)
        assert all(bucket.total_duration == 120 for bucket in buckets)

        db.refresh(agent)
        assert agent.last_scorecard["overall_score"] == 7

    async def test_accumulates_in_existing_bucket(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        for scores in (SCORES_A, SCORES_B):
            transcript = make_transcript(organization, agent, scores, created_at=datetime(2024, 5, 10, 9, 0))
            await service.record_transcript(transcript)

        bucket = db.query(AgentPerformance).filter_by(agent_id=agent.id, period_type="daily").one()
        assert bucket.call_count == 2
        assert bucket.metric_sums["overall_score"] == 15
        assert bucket.metric_counts["overall_score"] == 2
        assert bucket.totals().average("overall_score") == 7.5

    async def test_skip_reasons(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)

        unscored = make_transcript(organization, agent)
        assert (await service.record_transcript(unscored))["reason"] == "no_scorecard"

        unassigned = make_transcript(organization, None, SCORES_A)
        assert (await service.record_transcript(unassigned))["reason"] == "invalid_agent_id"

        assert db.query(AgentPerformance).count() == 0

    async def test_rollup_matches_full_recompute(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        transcripts = [
            make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 5, 3), duration=300),
            make_transcript(organization, agent, {"overall_score": 9}, created_at=datetime(2024, 5, 17)),
            make_transcript(organization, agent, SCORES_B, created_at=datetime(2024, 5, 28), duration=100),
        ]
        for transcript in transcripts:
            await service.record_transcript(transcript)

        metrics = await service.update_agent_performance_metrics(
            agent.id, start_date=datetime(2024, 5, 1), end_date=datetime(2024, 5, 31, 23, 59, 59)
        )
        bucket = db.query(AgentPerformance).filter_by(agent_id=agent.id, period_type="monthly").one()
        averages = bucket.totals().averages()

        for name, value in metrics["current_period"]["average_scores"].items():
            assert averages[name] == pytest.approx(value)
        assert averages["call_duration"] == pytest.approx(metrics["current_period"]["avg_call_duration"])
        assert bucket.call_count == metrics["current_period"]["call_count"]


class TestNormalizeAndRebuild:
    async def test_normalize_is_idempotent(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        for scores in (SCORES_A, SCORES_B):
            await service.record_transcript(make_transcript(organization, agent, scores, created_at=datetime(2024, 2, 1)))

        await service.normalize_aggregates()
        first = bucket_snapshot(db), [b.metric_averages for b in db.query(AgentPerformance).order_by(AgentPerformance.id)]
        await service.normalize_aggregates()
        second = bucket_snapshot(db), [b.metric_averages for b in db.query(AgentPerformance).order_by(AgentPerformance.id)]

        assert first == second
        monthly = db.query(AgentPerformance).filter_by(period_type="monthly").one()
        assert monthly.metric_averages["overall_score"] == 7.5

    async def test_rebuild_reproduces_incremental_state(self, db, organization, agent, make_agent, make_transcript):
        other = make_agent(organization)
        service = AgentAnalyticsService(db)
        transcripts = [
            make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 1, 15), duration=200),
            make_transcript(organization, agent, SCORES_B, created_at=datetime(2024, 2, 10)),
            make_transcript(organization, other, SCORES_B, created_at=datetime(2024, 3, 5), duration=50),
            make_transcript(organization, agent),  # never rolled up
        ]
        for transcript in transcripts:
            await service.record_transcript(transcript)
        incremental = bucket_snapshot(db)

        result = await service.rebuild_aggregates()

        assert result == {"total_processed": 3, "success_count": 3, "error_count": 0, "skipped_count": 0}
        db.expire_all()
        assert bucket_snapshot(db) == incremental
        assert all(b.metric_averages is not None for b in db.query(AgentPerformance).all())

    async def test_rebuild_counts_unscored_analysis_as_skipped(self, db, organization, agent, make_transcript):
        make_transcript(organization, agent, analysis={"call_summary": "No scorecard here"})
        service = AgentAnalyticsService(db)

        result = await service.rebuild_aggregates()

        assert result["total_processed"] == 1
        assert result["skipped_count"] == 1


class TestTrends:
    async def test_monthly_trends_chronological(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        for created_at, scores in [
            (datetime(2024, 3, 5), SCORES_B),
            (datetime(2024, 1, 15), SCORES_A),
            (datetime(2024, 2, 10), {"overall_score": 6.66}),
        ]:
            await service.record_transcript(make_transcript(organization, agent, scores, created_at=created_at))

        result = await service.get_agent_performance_trends(agent.id, "monthly")

        assert result["period_type"] == "monthly"
        assert [point["period"] for point in result["trends"]] == ["Jan 2024", "Feb 2024", "Mar 2024"]
        assert result["trends"][1]["overall_score"] == 6.7
        assert result["trends"][1]["customer_service"] is None

    async def test_limit_keeps_most_recent(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        for month in (1, 2, 3, 4):
            await service.record_transcript(
                make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, month, 10))
            )

        result = await service.get_agent_performance_trends(agent.id, "monthly", limit=2)
        assert [point["period_key"] for point in result["trends"]] == ["2024-03", "2024-04"]

    async def test_invalid_period_type_falls_back_to_monthly(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        await service.record_transcript(make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 6, 1)))

        for period_type in ("daily", "yearly"):
            result = await service.get_agent_performance_trends(agent.id, period_type)
            assert result["period_type"] == "monthly"
            assert result["trends"][0]["period_key"] == "2024-06"

    async def test_weekly_and_quarterly_labels(self, db, organization, agent, make_transcript):
        service = AgentAnalyticsService(db)
        await service.record_transcript(make_transcript(organization, agent, SCORES_A, created_at=datetime(2024, 5, 10)))

        weekly = await service.get_agent_performance_trends(agent.id, "weekly")
        quarterly = await service.get_agent_performance_trends(agent.id, "quarterly")

        assert weekly["trends"][0]["period"] == "Week 19"
        assert quarterly["trends"][0]["period"] == "Q2 2024"
