import uvicorn
from constants import HOST, PORT, RELOAD, LOG_LEVEL, LOG_FILE
from logging_config import get_logger, setup_logging

# Setup logging before uvicorn imports the app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

logger = get_logger(__name__)


def main():
    logger.info(f"Starting matchmaking server on {HOST}:{PORT}")
    uvicorn.run("app:app", host=HOST, port=PORT, reload=RELOAD, log_config=None)


if __name__ == "__main__":
    main()
