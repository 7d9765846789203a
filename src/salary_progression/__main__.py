"""Entry point for running the application with uvicorn."""

import uvicorn

from salary_progression.config import configure_logging, get_settings


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "salary_progression.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
