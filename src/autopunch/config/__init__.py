import os


def get_settings_module() -> str:
    # APP_ENV chooses the settings module, 'development' by default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "autopunch.config.production"

    if env in {"test", "testing"}:
        return "autopunch.config.testing"

    return "autopunch.config.development"
