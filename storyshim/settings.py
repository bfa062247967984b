"""Settings resolution with named profile support."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "storyshim" / "config.toml"


class StoryshimSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STORYSHIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Connection
    jira_base_url: str | None = None
    jira_email: str | None = None
    jira_api_token: SecretStr | None = None

    # Query
    project_key: str | None = None
    acceptance_criteria_field: str | None = None  # e.g. customfield_10041, instance specific
    page_size: int = Field(default=50, ge=1, le=100)
    all_pages: bool = False
    max_results: int | None = Field(default=None, ge=1)

    # Transport
    timeout: float = Field(default=30.0, gt=0)

    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # profile values arrive as init kwargs; env and .env win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def connection(self) -> dict[str, str | None]:
        """Raw connection mapping for the config validator. Missing values stay None."""
        return {
            "baseUrl": self.jira_base_url,
            "email": self.jira_email,
            "apiKey": self.jira_api_token.get_secret_value() if self.jira_api_token else None,
        }


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/storyshim/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> StoryshimSettings:
    """Resolve the active profile and return a fully populated StoryshimSettings.

    Precedence for the profile name (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. STORYSHIM_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/storyshim/config.toml
    4. First profile defined in ~/.config/storyshim/config.toml

    Environment variables and .env always override values from the profile block.
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("STORYSHIM_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = toml_config[active].unwrap()
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    return StoryshimSettings(**profile_defaults)
