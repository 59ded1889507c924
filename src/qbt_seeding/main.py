#!/usr/bin/env python3
"""Main entry point for the qBittorrent seeding manager daemon."""

import logging
import signal
import sys
from datetime import datetime
from threading import Event

import uvicorn

from . import __version__
from .api import create_app
from .api.app_state import AppState
from .client import QBittorrentClient
from .config import Config
from .errors import InvalidConfigurationError
from .notifier import Notifier
from .service import SeedingService


# Custom log formatter with colors and symbols
class PrettyFormatter(logging.Formatter):
    """Custom formatter with colors and symbols for prettier output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m',
        'DIM': '\033[2m',
    }

    # Log level symbols
    SYMBOLS = {
        'DEBUG': '🔍',
        'INFO': '✔',
        'WARNING': '⚠',
        'ERROR': '✗',
        'CRITICAL': '💀',
    }

    def __init__(self, use_colors=True, use_symbols=True):
        """Initialize formatter."""
        self.use_colors = use_colors and sys.stdout.isatty()
        self.use_symbols = use_symbols
        super().__init__()

    def format(self, record):
        """Format log record with colors and symbols."""
        levelname = record.levelname
        color = self.COLORS.get(levelname, '') if self.use_colors else ''
        reset = self.COLORS['RESET'] if self.use_colors else ''
        dim = self.COLORS['DIM'] if self.use_colors else ''
        symbol = self.SYMBOLS.get(levelname, '•') if self.use_symbols else ''

        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        if not self.use_colors:
            formatted = f"{time_str} {symbol} {levelname:8} {record.getMessage()}"
        elif levelname in ('WARNING', 'ERROR', 'CRITICAL'):
            formatted = f"{dim}{time_str}{reset} {color}{symbol} {levelname:8}{reset} {record.getMessage()}"
        elif record.name == __name__:
            # Entry point messages in bold
            formatted = f"{dim}{time_str}{reset} {color}{symbol}{reset} {self.COLORS['BOLD']}{record.getMessage()}{reset}"
        else:
            formatted = f"{dim}{time_str}{reset} {color}{symbol}{reset} {record.getMessage()}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def setup_logging(level: str = "INFO") -> None:
    """Set up logging with pretty formatting."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(PrettyFormatter(use_colors=True, use_symbols=True))

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(numeric_level)
    console_handler.setLevel(numeric_level)
    if numeric_level > logging.DEBUG:
        # Suppress some noisy loggers
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('qbittorrentapi').setLevel(logging.WARNING)
        logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    root_logger.addHandler(console_handler)


def print_banner():
    """Print a startup banner."""
    banner = f"""
╔══════════════════════════════════════════════════════════╗
║           🌱 qBittorrent Seeding Manager v{__version__} 🌱          ║
╚══════════════════════════════════════════════════════════╝"""
    print(banner)


# Set up module logger
logger = logging.getLogger(__name__)


def build_service(config: Config) -> SeedingService:
    """Wire the qBittorrent client, notifier and seeding service together."""
    client = QBittorrentClient(config.connection)
    if not client.connect():
        logger.warning("qBittorrent is not reachable yet - checks will retry every interval")

    return SeedingService(
        config.seeding,
        provider=client,
        controller=client,
        notifier=Notifier.from_config(config.notify),
        request_timeout=config.connection.request_timeout,
    )


def main():
    """Main entry point."""
    config = Config.from_environment()
    setup_logging(config.log_level)
    print_banner()

    try:
        config.validate()
    except InvalidConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    service = build_service(config)
    shutdown_event = Event()

    def handle_wake(signum, frame):
        logger.info("Manual seeding check triggered via signal")
        service.wake()

    def handle_shutdown(signum, frame):
        logger.info("Shutdown requested - goodbye! 👋")
        shutdown_event.set()

    signal.signal(signal.SIGUSR1, handle_wake)
    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    logger.info(
        f"Mode: seed for {config.seeding.time_multiplier:g}x download time, "
        f"checking every {config.seeding.check_interval:g}s"
    )
    logger.info("Manual trigger: docker kill --signal=SIGUSR1 qbt-seeding")
    print("─" * 60)

    service.start()
    try:
        if config.web.enabled:
            logger.info(f"Web API listening on {config.web.host}:{config.web.port}")
            # uvicorn installs its own SIGINT/SIGTERM handlers and returns on shutdown
            uvicorn.run(
                create_app(AppState(config, service)),
                host=config.web.host,
                port=config.web.port,
                log_level=config.log_level.lower(),
            )
        else:
            shutdown_event.wait()
    finally:
        service.stop()


if __name__ == "__main__":
    main()
