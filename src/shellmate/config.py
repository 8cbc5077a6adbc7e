"""Configuration management for shellmate."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from shellmate.errors import ConfigurationError
from shellmate.prompts import DEFAULT_PERSONALITY, PROMPT_FILES

PromptKind = Literal["generate", "explain", "ask", "fix", "script"]

PERSONALITY_FILE = "personality"
PROMPTS_DIR = "prompts"
RC_FILE = "shellmaterc"
HISTORY_FILE = "history"


def _default_home() -> Path:
    return Path.home() / ".shellmate"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SHELLMATE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    home: Path = Field(default_factory=_default_home, description="Config directory")
    shell: str = Field(default="bash", description="POSIX shell used to run commands")
    assistant_command: str = Field(default="claude", description="AI assistant CLI executable")
    assistant_timeout: float | None = Field(default=None, description="Seconds to wait for the assistant")
    unattended: bool = Field(default=False, description="Run generated commands without confirmation")

    log_level: str = Field(default="WARNING", description="Console log level")
    log_file: Path | None = Field(default=None, description="Optional debug log file")

    @property
    def rc_path(self) -> Path:
        return self.home / RC_FILE

    @property
    def history_path(self) -> Path:
        return self.home / HISTORY_FILE


@dataclass(frozen=True)
class PromptTemplates:
    """System prompts and personality used for every assistant call."""

    generate: str
    explain: str
    ask: str
    fix: str
    script: str
    personality: str = ""

    def system_prompt(self, kind: PromptKind) -> str:
        base: str = getattr(self, kind)
        if not self.personality:
            return base
        return f"{base}\n\nPersonality: {self.personality}"


def get_settings(**overrides: object) -> Settings:
    """Build settings from the environment, `.env` and explicit overrides."""
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


def _read_prompt(path: Path, default: str) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return default.strip()


def load_prompts(home: Path) -> PromptTemplates:
    """Load prompt overrides from the config home, falling back to defaults."""
    prompts_dir = home / PROMPTS_DIR
    loaded = {
        name.removesuffix(".txt"): _read_prompt(prompts_dir / name, default) for name, default in PROMPT_FILES.items()
    }
    personality = _read_prompt(home / PERSONALITY_FILE, DEFAULT_PERSONALITY)
    return PromptTemplates(personality=personality, **loaded)


def ensure_home(home: Path) -> None:
    """Create the config home with default prompt files on first run."""
    if home.exists():
        return
    prompts_dir = home / PROMPTS_DIR
    try:
        prompts_dir.mkdir(parents=True, exist_ok=True)
        _write_default(home / PERSONALITY_FILE, DEFAULT_PERSONALITY)
        for name, content in PROMPT_FILES.items():
            _write_default(prompts_dir / name, content)
    except OSError as exc:
        logger.warning("could not create config home {}: {}", home, exc)
        return
    logger.debug("created config home at {}", home)


def _write_default(path: Path, content: str) -> None:
    if not path.exists():
        path.write_text(content + "\n", encoding="utf-8")
