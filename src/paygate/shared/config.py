import os
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING
from os import PathLike
from pathlib import Path
from tomllib import load

from pydantic import BaseModel, field_validator

DEFAULT_CONFIG_PATH = Path(os.environ.get("PAYGATE_CONFIG", "config.toml"))

# Environment variables that take precedence over the security section
SECRET_ENV_OVERRIDES = {
    "encryption_key": "PAYGATE_ENCRYPTION_KEY",
    "jwt_secret": "PAYGATE_JWT_SECRET",
}


class General(BaseModel):
    title: str


class Database(BaseModel):
    path: str


class Logging(BaseModel):
    level: int

    @field_validator("level", mode="before")
    @classmethod
    def convert_log_level(cls, value):
        if isinstance(value, int):
            return value

        log_levels = {
            "DEBUG": DEBUG,
            "INFO": INFO,
            "WARNING": WARNING,
            "ERROR": ERROR,
            "CRITICAL": CRITICAL,
        }
        return log_levels.get(value.upper(), INFO)


class Paths(BaseModel):
    logs: str


class Security(BaseModel):
    encryption_key: str
    jwt_secret: str
    token_ttl_seconds: int = 3600  # 1 hour, as issued by the login route
    bcrypt_rounds: int = 10

    # scrypt parameters for field encryption; changing them orphans stored data
    scrypt_n: int = 16384
    scrypt_r: int = 8
    scrypt_p: int = 1

    @field_validator("encryption_key", "jwt_secret")
    @classmethod
    def not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("secret must not be empty")
        return value


class RateLimit(BaseModel):
    timeout_period: int
    requests_per_second: int


class Network(BaseModel):
    host: str
    port: int
    reload: bool
    allowed_origins: list[str] = ["*"]

    rate_limit: RateLimit


class Config(BaseModel):
    general: General
    database: Database
    paths: Paths
    logging: Logging
    security: Security
    network: Network


def load_config(
    shared_config_file: PathLike = DEFAULT_CONFIG_PATH,
    specific_config_file: PathLike | None = None,
) -> Config:
    """Load and merge configurations from TOML files."""
    # Load shared config
    with Path(shared_config_file).open("rb") as f:
        config_data = load(f)

    # Load and merge specific config if provided
    if specific_config_file:
        with Path(specific_config_file).open("rb") as f:
            specific_data = load(f)
            config_data.update(specific_data)

    security = config_data.setdefault("security", {})
    for key, env_name in SECRET_ENV_OVERRIDES.items():
        if env_name in os.environ:
            security[key] = os.environ[env_name]

    return Config(**config_data)
