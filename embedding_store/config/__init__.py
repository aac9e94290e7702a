"""Application configuration"""

import logging
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("grpc").setLevel(logging.WARNING)

from .loader import load_raw_config, DEFAULT_CONFIG_PATH
from .milvus import Milvus

milvus = Milvus(load_raw_config())


class Config:
    milvus = milvus


__all__ = ["milvus", "Milvus", "Config", "load_raw_config", "DEFAULT_CONFIG_PATH"]
