from functools import lru_cache

from pydantic import EmailStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='forbid',
    )

    DATABASE_URL: str
    JWT_SECRET_KEY: str
    APP_ENV: str = 'development'
    CORS_ORIGINS: str = 'http://localhost:3000'
    SUPER_ADMIN_EMAIL: EmailStr
    SUPER_ADMIN_NAME: str = 'Edu-House Admin'

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ALGORITHM: str = 'HS256'

    SCHOOL_CODE_PREFIX: str = 'SCH'
    SCHOOL_CODE_OFFSET: int = 10_000
    DEFAULT_PASS_MARK: float = 50.0
    DISPLAY_TIMEZONE: str = 'Africa/Lagos'

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        if not value.startswith(('postgresql', 'sqlite')):
            raise ValueError('DATABASE_URL must point to PostgreSQL (or SQLite for local tests)')
        return value

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret_strength(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError('JWT secrets must be at least 32 characters')
        return value

    @field_validator('SUPER_ADMIN_EMAIL')
    @classmethod
    def normalize_super_admin_email(cls, value: EmailStr) -> EmailStr:
        # Pydantic will re-validate; we just normalize casing/whitespace.
        return str(value).strip().lower()

    @field_validator('SCHOOL_CODE_PREFIX')
    @classmethod
    def normalize_school_code_prefix(cls, value: str) -> str:
        value = value.strip().upper()
        if not value or not value.isalpha():
            raise ValueError('SCHOOL_CODE_PREFIX must be alphabetic')
        return value

    @field_validator('DEFAULT_PASS_MARK')
    @classmethod
    def validate_default_pass_mark(cls, value: float) -> float:
        if value < 0 or value > 100:
            raise ValueError('DEFAULT_PASS_MARK must be between 0 and 100')
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.CORS_ORIGINS.split(',') if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
