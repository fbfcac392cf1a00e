import uvicorn

from api.log import get_logger
from app import app

logger = get_logger("relay.main")


def main() -> None:
    settings = app.state.deps.settings
    logger.info("Sanafi Gasless Relay running on port %s", settings.port)
    logger.info("Gas sponsorship: %s (network %s)", settings.sponsorship_label, settings.network)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
