from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]
StatsEngine = Literal["tokei", "builtin"]

WASM_TARGET = "wasm32-unknown-unknown"
BUILD_PROFILE = "release"
CRATE_NAME = "holiday_card"

OUT_DIR = Path("web/wasm")
OUT_NAME = "holiday_card"
# wasm-bindgen loading mode: native ES modules, no bundler.
BINDGEN_TARGET = "web"

OPT_LEVEL = "-Oz"
DEV_SERVER_PORT = 8888
DEV_SERVER_HOST = "127.0.0.1"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOLIDAY_CARD_WEB_",
        env_file=".env",
        extra="ignore",
    )

    project_root: Path = Field(default=Path("."))
    run_root: Path = Field(default=Path("_runs"))
    log_level: LogLevel = Field(default="INFO")
    log_format: LogFormat = Field(default="console")

    crate_name: str = Field(default=CRATE_NAME)
    wasm_target: str = Field(default=WASM_TARGET)
    build_profile: str = Field(default=BUILD_PROFILE)
    cargo_target_dir: Path = Field(default=Path("target"))

    out_dir: Path = Field(default=OUT_DIR)
    out_name: str = Field(default=OUT_NAME, min_length=1)
    opt_level: str = Field(default=OPT_LEVEL)

    host: str = Field(default=DEV_SERVER_HOST)
    port: int = Field(default=DEV_SERVER_PORT, ge=0, le=65535)
    serve_root: Path | None = Field(default=None)

    stats_engine: StatsEngine = Field(default="tokei")

    cargo_bin: str = Field(default="cargo")
    wasm_bindgen_bin: str = Field(default="wasm-bindgen")
    wasm_opt_bin: str = Field(default="wasm-opt")
    tokei_bin: str = Field(default="tokei")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
