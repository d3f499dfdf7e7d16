"""Runtime settings for the evaluator and quiz generator."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BodmasSettings(BaseSettings):
    """
    Settings read from the environment.

    Every variable uses the ``BODMAS_`` prefix, e.g. ``BODMAS_LOG_LEVEL=DEBUG``.
    """

    model_config = SettingsConfigDict(env_prefix="BODMAS_", env_file=".env", extra="ignore")

    log_level: str = Field(default="INFO", description="Level of the package logger")
    max_expression_length: int = Field(
        default=1000, ge=1, description="Longest expression accepted by the evaluator"
    )
    max_nesting_depth: int = Field(
        default=200, ge=1, description="Deepest parenthesis nesting accepted by the evaluator"
    )
    quiz_max_attempts: int = Field(
        default=50, ge=1, description="Synthesis attempts before the quiz generator gives up"
    )


@lru_cache
def get_settings() -> BodmasSettings:
    return BodmasSettings()
