import json
from dataclasses import dataclass, asdict
from pathlib import Path

from platformdirs import user_config_dir


@dataclass
class Settings:
    catalog_url: str = "https://services.radio-canada.ca/ott/catalog/v2/gem/section/olympics"
    validation_url: str = "https://services.radio-canada.ca/media/validation/v2/"
    login_url: str = (
        "https://www.cbc.ca/account/login"
        "?returnto=https%3A%2F%2Fwww.cbc.ca%2F&referrer=https%3A%2F%2Fwww.cbc.ca%2F"
    )
    landing_url: str = "https://www.cbc.ca/account/landing"

    # Catalog pagination. The page size counts lineups, not items.
    page_size: int = 6
    max_pages: int = 10

    # 600 polls at 500ms gives the user five minutes to sign in.
    poll_interval_seconds: float = 0.5
    max_poll_attempts: int = 600
    session_lifetime_hours: int = 24

    http_timeout: float = 20.0

    # Empty means the Chromium build bundled with Playwright.
    browser_channel: str = ""


def config_path() -> Path:
    cfg_dir = Path(user_config_dir("gemwatch"))
    cfg_dir.mkdir(parents=True, exist_ok=True)
    return cfg_dir / "config.json"


def load_settings(path: Path | None = None) -> Settings:
    path = path or config_path()
    if not path.exists():
        return Settings()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return Settings(**{k: v for k, v in raw.items() if k in Settings.__annotations__})
    except Exception:
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> None:
    path = path or config_path()
    path.write_text(json.dumps(asdict(settings), indent=2) + "\n", encoding="utf-8")
