"""
Scheduled recompute of agent performance metrics for every organization
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, ContextManager, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db_context
from ..repositories.tenant_repository import OrganizationRepository
from ..services.analytics_service import AgentAnalyticsService

logger = logging.getLogger(__name__)

JOB_NAME = "update_agent_metrics"


class AgentMetricsJob:
    """Recomputes current-period metrics of every active agent.

    On the first day of a month the run also stores a historical snapshot
    named after the month, e.g. "May 2024".
    """

    def __init__(
        self,
        session_factory: Callable[[], ContextManager[Session]] = get_db_context,
        window_days: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.session_factory = session_factory
        self.window_days = window_days or settings.agent_metrics_window_days
        self.clock = clock

    async def __call__(self) -> Dict[str, Any]:
        return await self.run()

    async def run(self) -> Dict[str, Any]:
        end_date = self.clock()
        start_date = end_date - timedelta(days=self.window_days)
        save_historical = end_date.day == 1
        period_name = end_date.strftime("%B %Y")

        summary = {
            "organizations_processed": 0,
            "organizations_failed": 0,
            "agents_updated": 0,
            "agents_failed": 0,
            "agents_skipped": 0,
            "save_historical": save_historical,
            "period_name": period_name
        }

        logger.info("Starting scheduled agent metrics update job")
        with self.session_factory() as db:
            organizations = OrganizationRepository(db).get_active()
            logger.info(f"Processing {len(organizations)} active organizations")
            analytics = AgentAnalyticsService(db, window_days=self.window_days)

            for organization in organizations:
                try:
                    result = await analytics.update_all_agent_metrics(
                        organization.id,
                        start_date=start_date,
                        end_date=end_date,
                        save_historical=save_historical,
                        period_name=period_name
                    )
                except Exception as e:
                    db.rollback()
                    summary["organizations_failed"] += 1
                    logger.error(f"Error updating metrics for organization {organization.id}: {e}", exc_info=True)
                    continue

                summary["organizations_processed"] += 1
                summary["agents_updated"] += result["agents_updated"]
                summary["agents_failed"] += result["agents_failed"]
                summary["agents_skipped"] += result["agents_skipped"]
                logger.info(f"Updated {result['agents_updated']} agents for organization {organization.name}")

        logger.info(
            f"Agent metrics update job completed: {summary['organizations_processed']} organizations, "
            f"{summary['agents_updated']} agents updated, {summary['agents_failed']} failed"
        )
        return summary


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    print(asyncio.run(AgentMetricsJob().run()))
