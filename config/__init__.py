import os

_ENV_MODULES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    # QRATTEND_SETTINGS names a module outright (e.g. a site-specific one);
    # otherwise APP_ENV picks one of ours, 'development' by default.
    explicit = os.getenv("QRATTEND_SETTINGS")
    if explicit:
        return explicit

    env = os.getenv("APP_ENV", "development").lower()
    return _ENV_MODULES.get(env, "config.development")
