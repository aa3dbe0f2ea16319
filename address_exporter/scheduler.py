import asyncio
import logging
import time
from typing import List, Optional

from .metrics import ExporterMetrics

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs each job in its own task.

    A job ticks once as soon as it starts, then once per check interval
    until ``stop()`` is called. Jobs never wait on each other.
    """

    def __init__(self, jobs: List, exporter_metrics: Optional[ExporterMetrics] = None):
        self.jobs = jobs
        self.exporter_metrics = exporter_metrics
        self.stopped = asyncio.Event()
        self.tasks: List[asyncio.Task] = []
        self.last_successful_tick = 0.0

    @property
    def max_interval(self) -> float:
        return max((job.check_interval for job in self.jobs), default=0)

    def start(self):
        for job in self.jobs:
            self.tasks.append(asyncio.create_task(self.run_job(job), name=f'job-{job.name}'))

    async def run_job(self, job):
        logger.info(f'Starting {job.name} job: {len(job.addresses)} addresses every {job.check_interval}s')
        while True:
            await self.tick(job)
            try:
                await asyncio.wait_for(self.stopped.wait(), timeout=job.check_interval)
            except asyncio.TimeoutError:
                continue
            break
        logger.info(f'{job.name} job stopped')

    async def tick(self, job):
        try:
            updated = await job.tick()
        except Exception as e:
            logger.error(f'Error in {job.name} tick: {e}')
            return

        if updated > 0:
            self.last_successful_tick = time.time()
            if self.exporter_metrics:
                self.exporter_metrics.last_successful_tick.set(self.last_successful_tick)

    async def wait(self):
        await asyncio.gather(*self.tasks)

    async def stop(self):
        logger.info('Stopping jobs...')
        self.stopped.set()
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
