"""Service settings loaded from environment with safe fallbacks.

Environment precedence:
- Loads `.env` from the repo root before reading process env vars.
- Most values are pulled straight from env; booleans go through `_env_flag` so `"0"/"false"` work.
- Firebase credentials are optional: without `FIREBASE_CREDENTIALS_PATH` the Admin SDK falls
  back to application-default credentials (the normal case inside Cloud Functions / Cloud Run).

Key expectations (defaults in parentheses):
- `APP_ENV` controls settings class selection (`production` default).
- Logging: `LOG_LEVEL` (INFO), `LOG_DIR` (console only), `USE_JSON_LOGS` (true).
- Firebase: `FIREBASE_PROJECT_ID`, `FIREBASE_CREDENTIALS_PATH`, `FCM_DRY_RUN` (false).
- Collections: `REQUESTS_COLLECTION` (requests), `CONVERSATIONS_COLLECTION` (conversations),
  `USERS_COLLECTION` (users), `MESSAGES_COLLECTION` (messages).
- Push presentation: channel ids, click action, chat accent colour, message preview limit.
"""

import logging
import os
from pathlib import Path
from typing import ClassVar, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Base directory of the project; used for resolving relative paths reliably.
# (__file__ is app/core/config/settings.py, so we need to traverse three levels up)
BASE_DIR = Path(__file__).resolve().parents[3]


load_dotenv(BASE_DIR / ".env")

logger = logging.getLogger(__name__)


def _env_flag(name: str, *, default: Optional[bool] = False) -> Optional[bool]:
    """
    Helper to parse boolean-like environment variables.
    """
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    """Trigger service configuration loaded from environment variables.

    Behavior highlights:
    - Loads `.env` at repo root, then lets process env override.
    - Feature toggles parsed via `_env_flag` to accept common truthy/falsey strings.
    - Credential paths resolved relative to repo root when not absolute; a configured
      but missing file raises early instead of failing on the first trigger.
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = os.getenv("APP_ENV", "production")
    app_name: str = os.getenv("APP_NAME", "delivery_triggers")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: Optional[str] = os.getenv("LOG_DIR") or None
    use_json_logs: bool = _env_flag("USE_JSON_LOGS", default=True)
    use_colored_logs: bool = _env_flag("USE_COLORED_LOGS", default=False)

    firebase_project_id: Optional[str] = os.getenv("FIREBASE_PROJECT_ID")
    firebase_credentials_path: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_PATH")
    fcm_dry_run: bool = _env_flag("FCM_DRY_RUN", default=False)

    requests_collection: str = os.getenv("REQUESTS_COLLECTION", "requests")
    conversations_collection: str = os.getenv(
        "CONVERSATIONS_COLLECTION", "conversations"
    )
    users_collection: str = os.getenv("USERS_COLLECTION", "users")
    messages_collection: str = os.getenv("MESSAGES_COLLECTION", "messages")

    request_updates_channel: str = os.getenv(
        "REQUEST_UPDATES_CHANNEL", "request_updates"
    )
    chat_messages_channel: str = os.getenv("CHAT_MESSAGES_CHANNEL", "chat_messages")
    notification_click_action: str = os.getenv(
        "NOTIFICATION_CLICK_ACTION", "FLUTTER_NOTIFICATION_CLICK"
    )
    chat_accent_color: Optional[str] = os.getenv("CHAT_ACCENT_COLOR", "#7D2F00")
    message_preview_limit: int = int(os.getenv("MESSAGE_PREVIEW_LIMIT", 100))

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        env_override = os.getenv("APP_ENV")
        if env_override:
            object.__setattr__(self, "environment", env_override)
        if self.firebase_credentials_path:
            object.__setattr__(
                self,
                "firebase_credentials_path",
                self._resolve_credentials_path(self.firebase_credentials_path),
            )
        if self.message_preview_limit < 4:
            raise ValueError("MESSAGE_PREVIEW_LIMIT must leave room for the ellipsis")

    @property
    def messages_path_pattern(self) -> str:
        """Firestore path pattern for chat messages nested under conversations."""
        return (
            f"{self.conversations_collection}/{{conversationId}}/"
            f"{self.messages_collection}/{{messageId}}"
        )

    @property
    def requests_path_pattern(self) -> str:
        return f"{self.requests_collection}/{{requestId}}"

    def _resolve_credentials_path(self, filename: str) -> str:
        """Resolve a service-account file with repo-root fallback; reject missing files."""
        candidate_paths = []
        raw_path = Path(filename)
        if not raw_path.is_absolute():
            candidate_paths.append((BASE_DIR / raw_path).resolve())
        candidate_paths.append(raw_path.resolve())

        file_path: Optional[Path] = next(
            (path for path in candidate_paths if path.exists()), None
        )
        if not file_path:
            logger.error("Firebase credentials file not found: %s", filename)
            raise ValueError(f"Firebase credentials file not found: {filename}")
        return str(file_path)
