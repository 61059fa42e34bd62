"""Process entrypoint: `chess-session` (or `python -m src.main`)."""

import uvicorn

from src.api.app import create_app
from src.core.config import Settings
from src.core.logging_config import configure_logging


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    # log_config=None: keep the handlers installed by configure_logging
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
