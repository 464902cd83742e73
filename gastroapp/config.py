import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

_BASE_DIR = Path(__file__).resolve().parents[1]
load_dotenv(_BASE_DIR / ".env")


class Settings(BaseModel):
    backend_url: str = os.environ.get("GASTROAPP_BACKEND_URL", "http://127.0.0.1:8000")
    token_name: str = os.environ.get("GASTROAPP_TOKEN_NAME", "access_token")
    request_timeout: float = float(os.environ.get("GASTROAPP_REQUEST_TIMEOUT", "30"))

    base_dir: Path = _BASE_DIR
    # Empty means the token lives in an in-memory cookie jar only.
    credentials_file: str = os.environ.get("GASTROAPP_CREDENTIALS_FILE", "")

    log_level: str = os.environ.get("GASTROAPP_LOG_LEVEL", "INFO")


settings = Settings()
