"""
In-process cron scheduler for background jobs
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Any

from croniter import croniter

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class ScheduledJob:
    name: str
    cron: str
    func: JobFunc
    task: Optional[asyncio.Task] = None
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    runs: int = field(default=0)

    def next_run(self, base: Optional[datetime] = None) -> datetime:
        return croniter(self.cron, base or datetime.utcnow()).get_next(datetime)


class JobScheduler:
    """Runs named async jobs on cron expressions (UTC)"""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self.clock = clock
        self.jobs: Dict[str, ScheduledJob] = {}
        self.running = False

    def schedule_job(self, name: str, cron: str, func: JobFunc) -> ScheduledJob:
        """Register a job, replacing any job already scheduled under the same name"""
        if not croniter.is_valid(cron):
            raise ValueError(f"Invalid cron expression: {cron}")

        if name in self.jobs:
            logger.info(f"Replacing scheduled job {name}")
            self.stop_job(name)

        job = ScheduledJob(name=name, cron=cron, func=func)
        self.jobs[name] = job
        if self.running:
            self._start_job(job)

        logger.info(f"Scheduled job {name} with cron '{cron}'")
        return job

    def start(self):
        """Start the loops of every registered job"""
        self.running = True
        for job in self.jobs.values():
            if job.task is None or job.task.done():
                self._start_job(job)
        logger.info(f"Job scheduler started with {len(self.jobs)} jobs")

    async def stop(self):
        """Cancel every job loop and wait for them to finish"""
        self.running = False
        tasks = [job.task for job in self.jobs.values() if job.task and not job.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for job in self.jobs.values():
            job.task = None
        logger.info("Job scheduler stopped")

    def stop_job(self, name: str) -> bool:
        """Cancel and unregister one job; False if it was not scheduled"""
        job = self.jobs.pop(name, None)
        if job is None:
            return False
        if job.task and not job.task.done():
            job.task.cancel()
        logger.info(f"Stopped job {name}")
        return True

    async def run_job_now(self, name: str) -> Any:
        """Run a job immediately, outside of its schedule"""
        job = self.jobs.get(name)
        if job is None:
            raise KeyError(name)
        return await self._execute(job)

    def get_scheduled_jobs(self) -> List[Dict[str, Any]]:
        now = self.clock()
        return [
            {
                "name": job.name,
                "cron": job.cron,
                "next_run": job.next_run(now),
                "last_run": job.last_run,
                "last_error": job.last_error,
                "runs": job.runs,
                "running": job.task is not None and not job.task.done()
            }
            for job in self.jobs.values()
        ]

    def _start_job(self, job: ScheduledJob):
        job.task = asyncio.create_task(self._loop(job), name=f"job:{job.name}")

    async def _loop(self, job: ScheduledJob):
        while self.running:
            now = self.clock()
            delay = (job.next_run(now) - now).total_seconds()
            await asyncio.sleep(max(delay, 0))
            try:
                await self._execute(job)
            except Exception as e:
                logger.warning(f"Job {job.name} will retry at its next scheduled time after: {e}")

    async def _execute(self, job: ScheduledJob) -> Any:
        logger.info(f"Running job {job.name}")
        job.last_run = self.clock()
        job.runs += 1
        try:
            result = await job.func()
        except Exception as e:
            job.last_error = str(e)
            logger.error(f"Job {job.name} failed: {e}", exc_info=True)
            raise
        job.last_error = None
        return result
