import uvicorn

from core.config import LOG_LEVEL, WEB_HOST, WEB_PORT
from core.logger import logging
from web import app


def main():
    # Lifespan "on": a failed schema preparation aborts before the port is bound
    config = uvicorn.Config(
        app=app,
        host=WEB_HOST,
        port=WEB_PORT,
        log_level=LOG_LEVEL.lower(),
        lifespan="on",
    )
    server = uvicorn.Server(config)
    try:
        logging.info(f"Starting HTTP server on {WEB_HOST}:{WEB_PORT}")
        server.run()
    except KeyboardInterrupt:
        logging.info("Server shutdown by keyboard interrupt")

    if not server.started:
        logging.critical("Fatal initialization error: HTTP server did not start")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
