"""PlantCare station server: control loop plus the HTTP admin surface."""

import argparse
import logging
import sys

from plantcare import create_app
from plantcare.config import DEFAULT_CONFIG_PATH, load_config
from plantcare.domain.exceptions import PlantCareError

logger = logging.getLogger("plantcare.server")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="PlantCare station server")
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"server config file (default: $PLANTCARE_CONFIG or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.debug:
            config.debug = True
        host, port = config.http.host, config.http.port
        app = create_app(config, bootstrap_runtime=True)
    except PlantCareError as e:
        logging.basicConfig(level=logging.INFO)
        logger.critical("Startup failed: %s", e)
        return 1

    ssl_context = (config.http.cert, config.http.key) if config.http.tls_enabled else None
    scheme = "https" if ssl_context else "http"
    logger.info("Server starting on %s://%s:%s", scheme, host, port)

    try:
        app.run(
            host=host,
            port=port,
            ssl_context=ssl_context,
            debug=False,
            use_reloader=False,
            threaded=True,
        )
    except OSError as e:
        logger.critical("Cannot listen on %s: %s", config.http.addr, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
