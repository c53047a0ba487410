import argparse
import logging
import sys

from .core.db import DatabaseManager, wait_for_db
from .core.seed import ensure_default_admin, seed_demo_data
from .setting import get_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("psycopg2").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def main():
    """Main entry point for IntelBoard."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="IntelBoard - Request Matching and IT Landscape Platform")
    parser.add_argument(
        "--port",
        type=int,
        default=9005,
        help="Port for the API server"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.server.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode (DEBUG logging)"
    )
    parser.add_argument(
        "--seed-demo",
        action="store_true",
        help="Add a demo company, specialists and requests"
    )
    args = parser.parse_args()

    log_level = "DEBUG" if args.debug else args.log_level
    setup_logging(log_level)
    logger.info("Starting IntelBoard")

    database_url = settings.database.url
    if not database_url.startswith("sqlite"):
        if not wait_for_db(database_url, settings.database.wait_retries, settings.database.wait_delay):
            logger.error("Database is not reachable; giving up")
            sys.exit(1)

    db_manager = DatabaseManager(database_url)
    db_manager.init_db()

    try:
        ensure_default_admin(db_manager)
        if args.seed_demo:
            seed_demo_data(db_manager)
    except Exception as e:
        logger.error(f"Failed to seed database: {e}")

    # Build FastAPI app
    from .api.app import create_app
    app = create_app(db_manager, settings=settings)

    # Launch with uvicorn
    import uvicorn

    logger.info(f"Starting FastAPI server on http://0.0.0.0:{args.port}")
    print(f"\n  IntelBoard is running at: http://localhost:{args.port}")
    print(f"  API docs at: http://localhost:{args.port}/docs\n")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
