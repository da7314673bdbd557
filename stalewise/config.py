import os
from typing import TypedDict


class Config(TypedDict, total=False):
    # directory the file accessors serve from
    # override default value with the environment variable STALEWISE_ASSETS_DIR
    assets_dir: str
    """
    Root directory of the served resources.
    """

    # bytes, size of every read from storage
    # override default value with the environment variable STALEWISE_CHUNK_SIZE
    chunk_size: int
    """
    How many bytes are read from storage at a time (in bytes).
    """

    # bytes, spool size kept in memory before it rolls over to disk
    # override default value with the environment variable STALEWISE_SPOOL_MAX_SIZE
    spool_max_size: int
    """
    How much of a digested body is buffered in memory before spilling to a temporary file (in bytes).
    """

    # hashlib algorithm name used for ETags
    # override default value with the environment variable STALEWISE_DIGEST_ALGORITHM
    digest_algorithm: str
    """
    The name of the hashlib algorithm used to compute content digests.
    """


def get_default_config() -> Config:
    """Get the default configuration for Stalewise."""

    ASSETS_DIR = os.getenv("STALEWISE_ASSETS_DIR", "assets")
    CHUNK_SIZE = int(os.getenv("STALEWISE_CHUNK_SIZE", "65536"))  # 64 KiB
    SPOOL_MAX_SIZE = int(os.getenv("STALEWISE_SPOOL_MAX_SIZE", "1048576"))  # 1 MiB
    DIGEST_ALGORITHM = os.getenv("STALEWISE_DIGEST_ALGORITHM", "sha1")

    return {
        "assets_dir": ASSETS_DIR,
        "chunk_size": CHUNK_SIZE,
        "spool_max_size": SPOOL_MAX_SIZE,
        "digest_algorithm": DIGEST_ALGORITHM,
    }
