from recruitflow.config.settings import Settings
from recruitflow.database.connection import close_pool, init_pool
from recruitflow.logging.logger import Log
from recruitflow.services.factory import build_services
from recruitflow.worker.worker import Worker


def main() -> None:
    """Worker entry point. The API (recruitflow.api.server) only queues jobs; this process runs them."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(
        "Starting job worker",
        env=settings.app_env,
        inference_provider=settings.inference_provider,
        storage_backend=settings.storage_backend,
        pdf_engine=settings.pdf_engine,
    )
    init_pool(settings)

    try:
        services = build_services(settings)
        Worker(services.job_repo, services.job_executor, settings).run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
