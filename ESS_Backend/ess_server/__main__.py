import uvicorn

from ESS_Backend.ess_server.api import create_app
from ESS_Backend.ess_shared.config import Settings
from ESS_Backend.ess_shared.logging_setup import configure_logging


if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
