import logging
import sys

from getlogs_proxy.config.settings import ConfigurationError, load_settings
from getlogs_proxy.server.app import ProxyServer

logger = logging.getLogger("getlogs_proxy")


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        sys.exit(1)

    ProxyServer(settings).run()


if __name__ == "__main__":
    main()
