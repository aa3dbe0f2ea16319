import asyncio
import logging
import time

from aiohttp import web

from .client import ExecutionClient
from .exceptions import ExporterError
from .metrics import ExporterMetrics
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Tracks RPC reachability and tick freshness for the /health endpoint."""

    def __init__(self, client: ExecutionClient, scheduler: Scheduler, metrics: ExporterMetrics,
                 health_check_interval: float):
        self.client = client
        self.scheduler = scheduler
        self.metrics = metrics
        self.health_check_interval = health_check_interval
        self.rpc_healthy = False
        self.last_health_check = 0.0

    async def check_rpc_health(self) -> bool:
        try:
            block_number = await self.client.block_number()
        except (ExporterError, ValueError) as e:
            logger.error(f'Health check failed for {self.client.url}: {e}')
            self.rpc_healthy = False
            self.metrics.rpc_health.set(0)
            return False

        logger.debug(f'Health check succeeded (block: {block_number})')
        self.last_health_check = time.time()
        self.rpc_healthy = True
        self.metrics.rpc_health.set(1)
        return True

    async def run(self):
        while True:
            await self.check_rpc_health()
            await asyncio.sleep(self.health_check_interval)

    def is_healthy(self) -> bool:
        if not self.scheduler.jobs:
            return self.rpc_healthy
        # a tick must have landed within the last two intervals of the slowest job
        max_age = self.scheduler.max_interval * 2
        last_tick_ok = time.time() - self.scheduler.last_successful_tick < max_age
        return self.rpc_healthy and last_tick_ok

    async def health_check_handler(self, request):
        is_healthy = self.is_healthy()
        self.metrics.health.set(1 if is_healthy else 0)

        if is_healthy:
            return web.Response(text='healthy', status=200)
        else:
            return web.Response(text='unhealthy', status=500)
