import uvicorn

from recruitflow.api.app import create_app
from recruitflow.config.settings import Settings
from recruitflow.logging.logger import Log


def main() -> None:
    """API entry point: serve the FastAPI app with uvicorn."""
    settings = Settings()
    Log.configure(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
