import os
import re
from pathlib import Path
from typing import Any

import yaml
from humps import decamelize
from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

PROVIDER_WRAPPER_PATTERN = r"{{ from (.*) }}"
PROVIDER_CONFIG_PATTERN = r"^[a-zA-Z0-9]+ .*$"
YAML_ROOT_KEY = "jenkins"


def read_yaml_config_settings_source(yaml_file: str | Path | None) -> dict[str, Any]:
    if not yaml_file:
        return {}

    path = Path(yaml_file)
    if not path.exists():
        return {}

    data = yaml.safe_load(path.read_text("utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    # The original layout nests everything under a `jenkins:` key
    if isinstance(data.get(YAML_ROOT_KEY), dict):
        return data[YAML_ROOT_KEY]
    return data


def parse_config_provider(value: str) -> tuple[str, str]:
    match = re.match(PROVIDER_CONFIG_PATTERN, value)
    if not match:
        raise ValueError(
            f"Invalid pattern: {value}. Pattern should match: {PROVIDER_CONFIG_PATTERN}"
        )

    provider_type, provider_value = value.split(" ", 1)

    return provider_type, provider_value


def load_from_config_provider(config_provider: str) -> Any:
    provider_type, value = parse_config_provider(config_provider)
    if provider_type == "env":
        result = os.environ.get(value)
        if result is None:
            raise ValueError(f"Environment variable not found: {value}")
        return result
    else:
        raise ValueError(f"Invalid provider type: {provider_type}")


def _nested_model(model: type[BaseModel] | None, key: str) -> type[BaseModel] | None:
    if model is None or key not in model.model_fields:
        return None
    annotation = model.model_fields[key].annotation
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def parse_providers(
    settings_model: type[BaseModel] | None,
    config: dict[str, Any],
    existing_data: dict[str, Any],
) -> dict[str, Any]:
    """
    Resolving `{{ from <provider> <value> }}` references, getting only the data that is missing for the settings
    """
    for key, value in config.items():
        if isinstance(value, dict):
            existing_data[key] = parse_providers(
                _nested_model(settings_model, key), value, existing_data.get(key, {})
            )

        elif isinstance(value, str):
            # If the value is a provider, we try to load it from the provider
            if provider_match := re.match(PROVIDER_WRAPPER_PATTERN, value):
                # If the there is already value for that field, we ignore it
                # If the provider failed to load, we ignore it
                if key not in existing_data:
                    try:
                        existing_data[key] = load_from_config_provider(
                            provider_match.group(1)
                        )
                    except ValueError:
                        pass
            else:
                existing_data[key] = value
        else:
            existing_data[key] = value
    return existing_data


def decamelize_config(
    settings_model: type[BaseModel] | None, config: dict[str, Any]
) -> dict[str, Any]:
    """
    Normalizing the config yaml file to work with snake_case
    """
    result = {}
    for key, value in config.items():
        decamelize_key = decamelize(key)
        if isinstance(value, dict):
            # Nested models get their keys normalized too, primitive dicts are kept as is
            nested = _nested_model(settings_model, decamelize_key)
            result[decamelize_key] = (
                decamelize_config(nested, value) if nested else value
            )
        else:
            result[decamelize_key] = value
    return result


class YamlProvidersSettingsSource(PydanticBaseSettingsSource):
    """Lowest priority source: the yaml configuration file, with provider references resolved."""

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        # Values are produced for the whole model at once in __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        data = read_yaml_config_settings_source(self.config.get("yaml_file"))
        snake_case_config = decamelize_config(self.settings_cls, data)
        return parse_providers(self.settings_cls, snake_case_config, {})


class BaseJenkinsMCPSettings(BaseSettings):
    model_config = SettingsConfigDict(
        yaml_file="./config.yaml",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_sensitive_fields_data(self) -> set[str]:
        return _get_sensitive_information(self)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlProvidersSettingsSource(settings_cls),
        )


class BaseJenkinsMCPModel(BaseModel):
    def get_sensitive_fields_data(self) -> set[str]:
        return _get_sensitive_information(self)


def _is_sensitive(field: FieldInfo) -> bool:
    extra = field.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get("sensitive", False))


def _get_sensitive_information(
    model: BaseModel,
) -> set[str]:
    sensitive_set = {
        str(getattr(model, field_name))
        for field_name, field in type(model).model_fields.items()
        if _is_sensitive(field) and getattr(model, field_name)
    }

    recursive_sensitive_data = [
        getattr(model, field_name).get_sensitive_fields_data()
        for field_name in type(model).model_fields
        if isinstance(getattr(model, field_name), BaseJenkinsMCPModel)
    ]
    for sensitive_data in recursive_sensitive_data:
        sensitive_set.update(sensitive_data)

    return sensitive_set
