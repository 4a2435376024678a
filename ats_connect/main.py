"""
ATS Connect Main Entry Point

Starts the HTTP API that receives webhooks and serves connection
management and sync triggers.
"""

import sys
from typing import Optional


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the API under uvicorn."""
    import uvicorn

    from ats_connect.api.app import app
    from ats_connect.utils.config import get_settings
    from ats_connect.utils.logger import setup_logging

    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(app, host=host or settings.api.host, port=port or settings.api.port)


def main() -> int:
    """
    Main entry point for the ATS Connect service.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        from ats_connect.utils.logger import get_logger, setup_logging

        setup_logging()
        log = get_logger(__name__)
        log.info("Starting ATS Connect...")

        from ats_connect.utils.config import get_settings

        settings = get_settings()
        log.info(f"Environment: {settings.environment}")
        log.info(f"Debug mode: {settings.debug}")

        log.info("Initializing database connection...")
        from ats_connect.data.database import get_database_manager

        db_manager = get_database_manager()
        if db_manager.check_sync_connection():
            log.info("Database connection established")
        else:
            log.warning(
                "Could not connect to MongoDB. "
                "Requests will fail until it is reachable. Run 'ats-connect init-db' to initialize."
            )

        run_server()
        return 0

    except KeyboardInterrupt:
        print("\nService interrupted by user.")
        return 130
    except Exception as e:
        print(f"Fatal error: {e}")
        import traceback

        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
