from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studydeck.domain.constants import (
    DEFAULT_CARDS_PER_SESSION,
    DEFAULT_EASE,
    EASE_FLOOR,
    LAPSE_DELAY_MINUTES,
    LAPSE_EASE_PENALTY,
    MASTERY_THRESHOLD_DAYS,
    MAX_INTERVAL_DAYS,
    REVIEW_XP,
)
from studydeck.domain.review.models import SchedulerSettings


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/studydeck/config.toml",
        Path.home() / ".studydeck.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for studydeck.
    Supports loading from:
    1. Environment variables (STUDYDECK_*)
    2. Config file (~/.config/studydeck/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYDECK_",
        extra="ignore",
    )

    # Scheduling
    ease_floor: float = EASE_FLOOR
    initial_ease: float = DEFAULT_EASE
    lapse_ease_penalty: float = Field(default=LAPSE_EASE_PENALTY, ge=0)
    lapse_delay_minutes: int = Field(default=LAPSE_DELAY_MINUTES, ge=0)
    max_interval_days: int = Field(default=MAX_INTERVAL_DAYS, ge=1)
    mastery_threshold_days: int = Field(default=MASTERY_THRESHOLD_DAYS, ge=1)
    strict_invariants: bool = False

    # Sessions
    cards_per_session: int = Field(default=DEFAULT_CARDS_PER_SESSION, ge=0)
    review_xp: int = Field(default=REVIEW_XP, ge=0)

    # Paths
    deck_file: Path | None = None
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Explicit overrides beat env, env beats the TOML file
        toml_file = next((f for f in config_files() if f.exists()), None)
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("ease_floor")
    @classmethod
    def check_ease_floor(cls, v: float) -> float:
        if v <= 1.0:
            raise ValueError("ease_floor must be greater than 1.0 for intervals to grow")
        return v

    @field_validator("deck_file", mode="before")
    @classmethod
    def resolve_deck_file(cls, v: Any) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def check_initial_ease(self) -> "AppConfig":
        if self.initial_ease < self.ease_floor:
            raise ValueError("initial_ease must not be below ease_floor")
        return self

    def scheduler_settings(self) -> SchedulerSettings:
        return SchedulerSettings(
            ease_floor=self.ease_floor,
            initial_ease=self.initial_ease,
            lapse_ease_penalty=self.lapse_ease_penalty,
            lapse_delay=timedelta(minutes=self.lapse_delay_minutes),
            max_interval=self.max_interval_days,
            mastery_threshold=self.mastery_threshold_days,
            strict_invariants=self.strict_invariants,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studydeck/config.toml (if exists)
    3. Environment variables (STUDYDECK_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
