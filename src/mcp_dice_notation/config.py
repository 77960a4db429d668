from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DICE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Most dice a single dice term may roll, checked while parsing.
    max_dice: int = 10

    # Fixed seed for reproducible rolls from the MCP tool. Unset means secrets.SystemRandom.
    rng_seed: int | None = None

    log_level: str = "WARNING"


settings = Settings()
