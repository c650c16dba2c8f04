"""
Configuration settings for the seat monitor
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from core.errors import ConfigError
from core.models import FieldSelector, LookupKind, LookupStrategy, ReportMode

# Target labels
DEFAULT_REGION = "Southern"
DEFAULT_POU = "HYDERABAD"
DEFAULT_COURSES = ("Advanced (ICITSS) MCS",)

# Site layout: the primary hints are the control ids, then name patterns, then position
REGION_FIELD = FieldSelector(
    name="region",
    strategies=(
        LookupStrategy(LookupKind.BY_ID, "ddl_reg"),
        LookupStrategy(LookupKind.BY_ATTRIBUTE, "reg"),
        LookupStrategy(LookupKind.BY_POSITION, index=0),
    ),
)
POU_FIELD = FieldSelector(
    name="pou",
    strategies=(
        LookupStrategy(LookupKind.BY_ID, "ddl_pou"),
        LookupStrategy(LookupKind.BY_ATTRIBUTE, "pou"),
        LookupStrategy(LookupKind.BY_POSITION, index=1),
    ),
)
COURSE_FIELD = FieldSelector(
    name="course",
    strategies=(
        LookupStrategy(LookupKind.BY_ID, "ddl_course"),
        LookupStrategy(LookupKind.BY_ATTRIBUTE, "course"),
        LookupStrategy(LookupKind.BY_POSITION, index=2),
    ),
)
SUBMIT_STRATEGIES = (
    LookupStrategy(LookupKind.BY_TEXT, "Get List", tag="input"),
    LookupStrategy(LookupKind.BY_TEXT, "Get List", tag="button"),
    LookupStrategy(LookupKind.BY_ATTRIBUTE, "submit", tag="input", attribute="type"),
    LookupStrategy(LookupKind.BY_POSITION, tag="button", index=0),
)
TABLE_STRATEGIES = (
    LookupStrategy(LookupKind.BY_ID, "GridView1", tag="table"),
    LookupStrategy(LookupKind.BY_ATTRIBUTE, "grid", tag="table", attribute="class"),
    LookupStrategy(LookupKind.BY_POSITION, tag="table", index=0),
)


@dataclass(frozen=True)
class MonitorConfig:
    """Everything one run needs, fixed before the browser starts"""

    url: str
    region: str = DEFAULT_REGION
    pou: str = DEFAULT_POU
    courses: Tuple[str, ...] = DEFAULT_COURSES
    report_mode: ReportMode = ReportMode.POSITIVE
    notify_on_empty: bool = False

    # Browser / timing
    headless: bool = True
    max_select_attempts: int = 5
    click_timeout_ms: int = 5000
    settle_timeout_ms: int = 5000
    navigation_timeout_ms: int = 30000
    settle_delay_seconds: float = 1.0
    backoff_seconds: float = 1.0
    table_attempts: int = 2
    allow_degraded_extraction: bool = True

    # Output / channels
    output_dir: Path = Path("monitor_output")
    discord_webhook_url: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    # Site layout
    region_field: FieldSelector = REGION_FIELD
    pou_field: FieldSelector = POU_FIELD
    course_field: FieldSelector = COURSE_FIELD
    submit_strategies: Tuple[LookupStrategy, ...] = SUBMIT_STRATEGIES
    table_strategies: Tuple[LookupStrategy, ...] = TABLE_STRATEGIES

    def validate(self) -> "MonitorConfig":
        """Validate that required configuration is present"""
        if not self.url:
            raise ConfigError("MONITOR_URL not found in environment variables")
        if not self.courses or not all(c.strip() for c in self.courses):
            raise ConfigError("At least one non-empty course label is required")
        if not self.region.strip() or not self.pou.strip():
            raise ConfigError("Region and POU labels must not be empty")
        if self.max_select_attempts < 1 or self.table_attempts < 1:
            raise ConfigError("Attempt counts must be at least 1")
        if self.click_timeout_ms <= 0 or self.settle_timeout_ms <= 0:
            raise ConfigError("Timeouts must be positive")
        return self


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


def _env_mode(env: Mapping[str, str]) -> ReportMode:
    raw = (env.get("REPORT_MODE") or ReportMode.POSITIVE.value).strip().lower()
    try:
        return ReportMode(raw)
    except ValueError:
        raise ConfigError(f"REPORT_MODE must be 'all' or 'positive', got {raw!r}") from None


class Config:
    """Builds a MonitorConfig from the environment (and a .env file)"""

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> MonitorConfig:
        if env is None:
            load_dotenv()
            env = os.environ

        courses_raw = env.get("MONITOR_COURSES")
        courses = DEFAULT_COURSES
        if courses_raw:
            courses = tuple(c.strip() for c in courses_raw.split(";") if c.strip())

        values = dict(
            url=(env.get("MONITOR_URL") or "").strip(),
            region=env.get("MONITOR_REGION") or DEFAULT_REGION,
            pou=env.get("MONITOR_POU") or DEFAULT_POU,
            courses=courses,
            report_mode=_env_mode(env),
            notify_on_empty=_env_bool(env, "NOTIFY_ON_EMPTY", False),
            headless=_env_bool(env, "BROWSER_HEADLESS", True),
            max_select_attempts=_env_int(env, "MAX_SELECT_ATTEMPTS", 5),
            click_timeout_ms=_env_int(env, "CLICK_TIMEOUT_MS", 5000),
            settle_timeout_ms=_env_int(env, "SETTLE_TIMEOUT_MS", 5000),
            settle_delay_seconds=_env_float(env, "SETTLE_DELAY_SECONDS", 1.0),
            backoff_seconds=_env_float(env, "BACKOFF_SECONDS", 1.0),
            output_dir=Path(env.get("OUTPUT_DIR") or "monitor_output"),
            discord_webhook_url=env.get("DISCORD_WEBHOOK_URL") or None,
            telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN") or None,
            telegram_chat_id=env.get("TELEGRAM_CHAT_ID") or None,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return MonitorConfig(**values).validate()
