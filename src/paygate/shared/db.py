from sqlalchemy import Engine

from paygate.shared import load_config
from paygate.shared.store import build_engine

__all__ = ["build_engine", "engine"]

config = load_config()

engine: Engine = build_engine(config.database.path)
