from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Настройки приложения и окружения.
    app_name: str = "Ilan Learning"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    debug: bool = False
    database_url: str
    log_level: str = "INFO"
    # Прокси, которым разрешено подменять адрес клиента через X-Forwarded-For.
    forwarded_allow_ips: str = "127.0.0.1"

    # Ограничения чата.
    chat_max_messages: int = 3
    chat_window_hours: int = 24
    chat_message_max_length: int = 500
    chat_user_id_max_length: int = 100
    chat_page_size: int = 100

    # Внешний классификатор модерации (OpenAI-совместимый endpoint).
    moderation_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    moderation_api_key: str = ""
    moderation_model: str = "llama-3.1-8b-instant"
    moderation_timeout_seconds: float = 8.0
    blocked_terms_file: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
