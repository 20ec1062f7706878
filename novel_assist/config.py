from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    title_max_chars: int = 100
    description_max_chars: int = 500
    description_max_lines: int = 3
    min_description_chars: int = 5

    character_names_max: int = 5
    character_name_min_chars: int = 2
    character_name_max_chars: int = 6

    min_report_line_chars: int = 5
    reply_json_max_chars: int = 10000

    model_config = SettingsConfigDict(env_prefix="NOVEL_ASSIST_", env_file=".env", extra="ignore")


settings = Settings()
