"""Configuration helpers for the Synthient client."""

import os
from pathlib import Path
from dataclasses import dataclass

from .client import DEFAULT_API_BASE_URL, DEFAULT_FEEDS_BASE_URL


@dataclass(frozen=True)
class SynthientConfig:
    api_key: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    feeds_base_url: str = DEFAULT_FEEDS_BASE_URL
    timeout_seconds: float | None = None
    debug: bool = False

    @staticmethod
    def from_env(env_file: str | os.PathLike[str] = ".env") -> "SynthientConfig":
        _load_dotenv(Path(env_file))
        return SynthientConfig(
            api_key=os.getenv("SYNTHIENT_API_KEY"),
            api_base_url=os.getenv("SYNTHIENT_API_URL") or DEFAULT_API_BASE_URL,
            feeds_base_url=os.getenv("SYNTHIENT_FEEDS_URL") or DEFAULT_FEEDS_BASE_URL,
            timeout_seconds=_parse_optional_float(os.getenv("SYNTHIENT_TIMEOUT_SECONDS")),
            debug=os.getenv("SYNTHIENT_DEBUG", "false").lower() in {"1", "true", "yes"},
        )


def _parse_optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _load_dotenv(env_path: Path) -> None:
    if not env_path.exists():
        return
    try:
        content = env_path.read_text(encoding="utf-8")
    except OSError:
        return

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value
