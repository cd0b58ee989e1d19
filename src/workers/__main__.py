"""CLI entry points for the tenancy workers."""

import argparse
import asyncio
import sys

from shared.config import get_settings
from shared.infrastructure.observability.logger import configure_logging, get_logger
from shared.utils.serialization import dumps
from tenancy.container import TenancyContainer
from tenancy.domain.value_objects import StepStatus
from workers.health_check_worker import HealthCheckWorker

logger = get_logger(__name__)


async def init_db(container: TenancyContainer) -> int:
    outcomes = await container.schema.initialize_database()
    print(dumps([o.to_dict() for o in outcomes], indent=2))
    return 0 if all(o.status is StepStatus.SUCCESS for o in outcomes) else 1


async def run_health(container: TenancyContainer, once: bool) -> int:
    worker = HealthCheckWorker(container.monitor, interval=container.settings.HEALTH_CHECK_INTERVAL_SECONDS)
    if once:
        ok = await worker.run_once()
        if worker.last_report is not None:
            print(dumps(worker.last_report.to_dict(), indent=2))
        return 0 if ok else 1
    worker.setup_signal_handlers()
    await worker.run()
    return 0


async def _main(args: argparse.Namespace) -> int:
    container = TenancyContainer.build()
    try:
        if args.command == "init-db":
            return await init_db(container)
        return await run_health(container, once=args.once)
    finally:
        await container.close()


def main():
    parser = argparse.ArgumentParser(description="Shop tenancy workers")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create every tenancy collection that does not exist yet")
    health = sub.add_parser("health", help="Run the periodic fleet health check")
    health.add_argument("--once", action="store_true", help="Run a single pass and exit")

    args = parser.parse_args()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON, service=settings.PROJECT_NAME)

    try:
        sys.exit(asyncio.run(_main(args)))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
