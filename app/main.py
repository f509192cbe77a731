import signal
import threading

from dotenv import load_dotenv

from infrastructure.logging import configure_logging, get_module_logger
from infrastructure.services import get_settings
from modules.notifications import build_engine

load_dotenv()

logger = get_module_logger()


def main():
    """Start the notification engine and run its sweeps until interrupted."""
    configure_logging()
    settings = get_settings()

    logger.info(
        "application_startup",
        git_sha=settings.GIT_SHA,
        is_production=settings.is_production,
    )

    engine = build_engine(settings)
    for name, result in engine.channels.health_check().items():
        if result.is_success:
            logger.info("channel_healthy", channel=name)
        else:
            logger.error("channel_unhealthy", channel=name, error=result.message)

    stop_requested = threading.Event()

    def request_stop(signum, _frame):
        logger.info("shutdown_requested", signal=signum)
        stop_requested.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    engine.start()
    try:
        stop_requested.wait()
    finally:
        engine.stop()
        logger.info("application_shutdown")


if __name__ == "__main__":
    main()
