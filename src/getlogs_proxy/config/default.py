# getlogs_proxy/config/default.py

DEFAULT_CHUNK_SIZE = 100_000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8545
DEFAULT_MOUNT_PATH = "/"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_UPSTREAM_TIMEOUT = 30.0
