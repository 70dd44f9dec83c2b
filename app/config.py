from __future__ import annotations

import json
import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.layout_schema import DEFAULT_ELK_OPTIONS
from domain.services.build_behavior_geometry import BehaviorLayoutConfig

DEFAULT_CONFIG_PATH = Path("config/layout.yaml")


class BehaviorLayoutSettings(BaseModel):
    font_size: float = Field(14.0, gt=0)
    top_padding: float = Field(0.0, ge=0)
    between_padding: float = Field(6.0, ge=0)
    gutter: float = Field(20.0, ge=0)
    width_factor: float = Field(0.6, gt=0)
    line_height: float = Field(1.35, gt=0)

    def to_layout_config(self) -> BehaviorLayoutConfig:
        return BehaviorLayoutConfig(
            font_size=self.font_size,
            top_padding=self.top_padding,
            between_padding=self.between_padding,
            gutter=self.gutter,
        )


class SolverSettings(BaseModel):
    backend: Literal["http", "node"] = "node"
    base_url: str = "http://localhost:8080"
    path: str = "/layout"
    timeout_seconds: float = Field(30.0, gt=0)
    node_binary: str = "node"
    elk_module: str = "elkjs/lib/elk.bundled.js"

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, value: object) -> str:
        return str(value).strip().lower() if value else "node"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BDL_", env_nested_delimiter="__")

    layout: BehaviorLayoutSettings = BehaviorLayoutSettings()
    solver: SolverSettings = SolverSettings()
    elk_options: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ELK_OPTIONS))

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("elk_options", mode="before")
    @classmethod
    def normalize_elk_options(cls, value: object) -> dict[str, str]:
        if value is None or value == "":
            return dict(DEFAULT_ELK_OPTIONS)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                msg = "elk_options must be a JSON object"
                raise ValueError(msg) from exc
        if not isinstance(value, dict):
            msg = "elk_options must be a JSON object"
            raise ValueError(msg)
        return {str(key): str(item) for key, item in value.items()}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("BDL_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
