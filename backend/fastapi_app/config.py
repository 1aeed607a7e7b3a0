from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

API_VERSION = "0.1.0"

DEFAULT_MOVE_URL = "https://goodday-app-prod.uc.r.appspot.com/api/items/move"


def _default_env_file() -> str:
    # プロジェクトルート直下の .env
    repo_root = Path(__file__).resolve().parents[2]
    return str(repo_root / ".env")


@dataclass(frozen=True)
class Settings:
    upstream_url: str
    upstream_timeout: float
    root_path: str
    cors_origins: Tuple[str, ...]
    log_level: str
    port: int = 3001


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # .env があれば読むが、実環境変数の方を優先する
    env_file = os.getenv("SKU_MERGE_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

    return Settings(
        upstream_url=os.getenv("GOODDAY_MOVE_URL", DEFAULT_MOVE_URL),
        upstream_timeout=float(os.getenv("GOODDAY_TIMEOUT", "30")),
        root_path=os.getenv("API_ROOT_PATH", ""),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "3001")),
    )
