"""
Layered settings for car.

Settings are declared on `CarSettings` and loaded with pydantic-settings,
highest precedence first:

    command flags > JSON config file > environment (CAR_*) > defaults

The loaded model is frozen, so a long-running archive is not affected by
changes made to the environment after startup.
"""
import pathlib
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .errors import ConfigReadError


__all__ = ['CarSettings', 'ConfigProvider']

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1

ALIASES = {'logenabled': 'logging'}


def field_name(key: str) -> str:
    """
    Map a setting name as written on the command line or in the config file
    (`exclude-ext`, `logenabled`) to its field on CarSettings
    """
    key = ALIASES.get(key, key)
    return key.replace('-', '_')


class _JsonFileSource(JsonConfigSettingsSource):
    # Same spellings as the command line. Keys that aren't settings are
    # dropped by `extra='ignore'`
    def _read_file(self, file_path: pathlib.Path) -> Dict[str, Any]:
        data = super()._read_file(file_path)
        if not isinstance(data, dict):
            raise ValueError(f'{file_path} must hold a JSON object')
        return {field_name(key): value for key, value in data.items()}


class CarSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='CAR_',
        extra='ignore',
        frozen=True,
        json_file_encoding='utf-8',
    )

    configfilename: str = 'config.json'
    logging: bool = False
    logfile: str = ''
    verbose: bool = False

    format: str = 'tar'
    type: str = ''
    usefullpath: bool = False
    owner: int = Field(0, ge=INT64_MIN, le=INT64_MAX)
    group: int = Field(0, ge=INT64_MIN, le=INT64_MAX)
    mode: int = Field(0, ge=INT64_MIN, le=INT64_MAX)
    exclude_ext: str = ''
    include_ext: str = ''
    exclude_anchored: str = ''
    include_anchored: str = ''

    @field_validator('owner', 'group', 'mode', mode='before')
    @classmethod
    def _parse_integer(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if len(text) > 1 and text.startswith('0') and text.isdigit():
            # Unix-style octal, e.g. a mode of 0644
            return int(text, 8)
        if text[:2].lower() in ('0o', '0x', '0b'):
            return int(text, 0)
        return text

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The config file is itself named by a flag or an env var
        filename = init_settings.init_kwargs.get('configfilename')  # type: ignore[attr-defined]
        if filename is None:
            filename = env_settings().get(
                'configfilename',
                cls.model_fields['configfilename'].default,
            )
        if not filename:
            return init_settings, env_settings
        return (
            init_settings,
            _JsonFileSource(settings_cls, json_file=pathlib.Path(filename)),
            env_settings,
        )


class ConfigProvider:
    """
    Typed lookups by setting name over a loaded CarSettings
    """
    def __init__(self, settings: CarSettings):
        self.settings = settings

    @classmethod
    def load(cls, flags: Optional[Mapping[str, Any]] = None) -> 'ConfigProvider':
        """
        Read the environment and config file, with `flags` taking precedence.

        Unlike the config file, flags must all name known settings.
        """
        values = {}
        for key, value in (flags or {}).items():
            name = field_name(key)
            if name not in CarSettings.model_fields:
                raise ConfigReadError(f'Unknown setting: {key}')
            values[name] = value
        try:
            return cls(CarSettings(**values))
        except (OSError, ValueError) as ex:
            # pydantic's ValidationError and json's decode errors are both
            # ValueErrors
            raise ConfigReadError(f'Invalid configuration: {ex}') from ex

    def _lookup(self, name: str, kind: type) -> Any:
        attr = field_name(name)
        if attr not in CarSettings.model_fields:
            raise ConfigReadError(f'Unknown setting: {name}')
        value = getattr(self.settings, attr)
        if type(value) is not kind:
            raise ConfigReadError(f'{name} is not a {kind.__name__} setting')
        return value

    def get_bool(self, name: str) -> bool:
        return self._lookup(name, bool)

    def get_int(self, name: str) -> int:
        return self._lookup(name, int)

    def get_int64(self, name: str) -> int:
        return self._lookup(name, int)

    def get_string(self, name: str) -> str:
        return self._lookup(name, str)

    def is_set(self, name: str) -> bool:
        """
        True if the setting came from a flag, the config file or the
        environment rather than its default
        """
        return field_name(name) in self.settings.model_fields_set
