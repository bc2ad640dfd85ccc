"""
Настройки рантайма

Загружаются из переменных окружения CORIM_* поверх значений по умолчанию.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class Settings(BaseSettings):
    """Корневая конфигурация пакета"""

    model_config = SettingsConfigDict(
        env_prefix="CORIM_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: LogLevel = Field(default="INFO", description="Уровень логирования")
    log_format: LogFormat = Field(default="json", description="Формат вывода логов")

    json_indent: int | None = Field(
        default=None, ge=0, description="Отступ при сериализации в JSON (None — компактно)"
    )
    validate_on_encode: bool = Field(
        default=True, description="Вызывать validate() перед сериализацией"
    )
    validate_on_decode: bool = Field(
        default=False, description="Вызывать validate() после десериализации"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Singleton настроек.

    Для перечитывания окружения: get_settings.cache_clear()
    """
    return Settings()
