import asyncio
import logging
import os
import signal
import sys
from typing import List

from aiohttp import web
from prometheus_client import CollectorRegistry

from .client import ExecutionClient
from .config import Config
from .exceptions import ConfigError
from .job import Job
from .metrics import ClientMetrics, ExporterMetrics
from .monitor import HealthMonitor
from .probes import get_probe
from .scheduler import Scheduler
from .web import create_web_app

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'info'):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        force=True
    )


def build_jobs(config: Config, client: ExecutionClient, registry: CollectorRegistry) -> List[Job]:
    return [
        Job(
            get_probe(job_config.name),
            client,
            registry,
            job_config.addresses,
            check_interval=job_config.check_interval,
            namespace=config.settings.namespace,
            const_labels=config.settings.labels,
        )
        for job_config in config.jobs
    ]


async def main_async(config: Config):
    settings = config.settings
    registry = CollectorRegistry()
    client = ExecutionClient(
        config.execution.url,
        timeout=config.execution.timeout,
        headers=config.execution.headers,
        metrics=ClientMetrics(registry, settings.namespace),
    )
    exporter_metrics = ExporterMetrics(registry, settings.namespace)

    jobs = build_jobs(config, client, registry)
    if not jobs:
        logger.warning('No addresses configured, nothing will be exported')

    scheduler = Scheduler(jobs, exporter_metrics)
    monitor = HealthMonitor(client, scheduler, exporter_metrics, settings.health_check_interval)

    runner = web.AppRunner(create_web_app(monitor, registry))
    await runner.setup()
    site = web.TCPSite(runner, settings.metrics_addr, settings.port)
    await site.start()
    logger.info(f'Server started on {settings.metrics_addr}:{settings.port}')
    logger.info(f'Metrics endpoint: http://{settings.metrics_addr}:{settings.port}/metrics')

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    health_task = asyncio.create_task(monitor.run(), name='health-check')
    scheduler.start()
    try:
        await stop.wait()
        logger.info('Received shutdown signal')
    finally:
        health_task.cancel()
        await scheduler.stop()
        await asyncio.gather(health_task, return_exceptions=True)
        logger.info('Cleaning up runner...')
        await runner.cleanup()


def main():
    setup_logging()
    config_path = os.getenv('CONFIG_PATH', 'config.yaml')
    try:
        config = Config(config_path)
    except ConfigError as e:
        logger.error(f'Failed to load configuration: {e}')
        sys.exit(1)

    setup_logging(config.settings.log_level)
    try:
        asyncio.run(main_async(config))
    except KeyboardInterrupt:
        logger.info('Received shutdown signal')
    except Exception as e:
        logger.error(f'Fatal error in main: {e}')
        sys.exit(1)
    finally:
        logger.info('Program terminated')


if __name__ == '__main__':
    main()
