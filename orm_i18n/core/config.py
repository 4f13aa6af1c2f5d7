"""
Application configuration using Pydantic Settings
"""
from typing import List, Tuple, Union

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LanguageID = Union[int, str]


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "orm-i18n"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./i18n.db"

    # Translations
    I18N_LANGUAGES: List[str] = ["en"]
    I18N_DEFAULT_LANGUAGE: str = "en"
    I18N_SUFFIX: str = "_i18n"
    I18N_DEFAULT_SCOPE: bool = True
    I18N_ADD_SCOPE: bool = True
    I18N_INJECT_SCOPE: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


class I18NOptions(BaseModel):
    """Translation layer options, immutable once built"""

    model_config = ConfigDict(frozen=True)

    languages: Tuple[LanguageID, ...]
    default_language: LanguageID
    suffix: str = "_i18n"
    i18n_default_scope: bool = True
    add_i18n_scope: bool = True
    inject_i18n_scope: bool = True

    @model_validator(mode="after")
    def check_languages(self) -> "I18NOptions":
        if not self.languages or self.default_language in (None, ""):
            raise ValueError(
                "Language list and default language are mandatory and can't be empty"
            )
        if len(set(self.languages)) != len(self.languages):
            raise ValueError("Language list contains duplicates")
        if self.default_language not in self.languages:
            raise ValueError("Default language is invalid")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "I18NOptions":
        return cls(
            languages=tuple(settings.I18N_LANGUAGES),
            default_language=settings.I18N_DEFAULT_LANGUAGE,
            suffix=settings.I18N_SUFFIX,
            i18n_default_scope=settings.I18N_DEFAULT_SCOPE,
            add_i18n_scope=settings.I18N_ADD_SCOPE,
            inject_i18n_scope=settings.I18N_INJECT_SCOPE,
        )


settings = Settings()
