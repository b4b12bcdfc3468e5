"""Main application entry point - runs the scheduler, publisher and token refresh workers."""

import asyncio
import signal
import sys
from time import time
from typing import List

from linkhub.config.settings import settings
from linkhub.services.core.interval_worker import IntervalWorker
from linkhub.services.core.publisher import PublisherService
from linkhub.services.core.scheduler import SchedulerService
from linkhub.services.integrations.token_refresh import TokenRefreshService
from linkhub.services.platforms import AdapterRegistry
from linkhub.utils.logger import logger
from linkhub.utils.validators import ConfigValidator

shutdown_in_progress = False


def build_workers(registry: AdapterRegistry, sleep=asyncio.sleep) -> List[IntervalWorker]:
    """Create the three background workers sharing one adapter registry."""
    scheduler_service = SchedulerService()
    publisher_service = PublisherService(registry=registry)
    token_refresh_service = TokenRefreshService(registry=registry)

    return [
        IntervalWorker(
            "scheduler",
            scheduler_service.promote_due_posts,
            settings.SCHEDULER_INTERVAL_SECONDS,
            cleanup=scheduler_service.cleanup_transactions,
            sleep=sleep,
        ),
        IntervalWorker(
            "publisher",
            publisher_service.process_queue,
            settings.PUBLISHER_INTERVAL_SECONDS,
            cleanup=publisher_service.cleanup_transactions,
            sleep=sleep,
        ),
        IntervalWorker(
            "token-refresh",
            token_refresh_service.run_cycle,
            settings.TOKEN_REFRESH_INTERVAL_SECONDS,
            cleanup=token_refresh_service.cleanup_transactions,
            sleep=sleep,
        ),
    ]


async def main_async():
    """Main async application entry point."""
    logger.info("=" * 60)
    logger.info("LinkHub - Social Post Scheduler & Publisher")
    logger.info("=" * 60)

    # Validate configuration
    is_valid, errors = ConfigValidator.validate_all()

    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    logger.info("✓ Configuration validated successfully")

    registry = AdapterRegistry.from_settings()
    workers = build_workers(registry)
    session_start_time = time()

    tasks = [worker.start() for worker in workers]

    logger.info("✓ All workers started")
    logger.info(f"✓ Platforms: {', '.join(registry.platforms()) or 'none configured'}")
    logger.info(f"✓ Publisher batch size: {settings.PUBLISHER_BATCH_SIZE}")
    logger.info(f"✓ Adapter timeout: {settings.ADAPTER_TIMEOUT_SECONDS}s")
    logger.info("=" * 60)

    # Setup signal handlers for graceful shutdown
    def shutdown_handler(sig):
        """Handle shutdown signals gracefully."""
        global shutdown_in_progress

        # Guard against duplicate signals
        if shutdown_in_progress:
            logger.info(f"Shutdown already in progress, ignoring {sig.name} signal")
            return
        shutdown_in_progress = True

        uptime = int(time() - session_start_time)
        logger.info(f"Received {sig.name} signal, stopping workers (uptime {uptime}s)...")

        for worker in workers:
            worker.stop()

        logger.info("✓ Shutdown complete")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler, sig)

    # Wait for all tasks
    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        # Tasks were cancelled during shutdown
        pass


def main():
    """Main entry point."""
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
