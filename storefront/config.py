import os

base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_flag(value):
    return value in ("1", "true", "True", "yes")


class Config:
    SECRET_KEY = "dev-secret-key"
    SQLALCHEMY_DATABASE_URI = f"sqlite:///{os.path.join(base_dir, 'storefront.db')}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ストア操作のタイムアウト（秒）
    STORE_TIMEOUT_SECONDS = 5.0
    STOREFRONT_CREATE_SCHEMA = True

    HOST = "127.0.0.1"
    PORT = 8080
    DEBUG_MODE = False


def env_overrides(environ=None) -> dict:
    """
    Config values taken from the environment at app build time.
    STOREFRONT_DATABASE_URL wins over STOREFRONT_DB_PATH (sqlite file path).
    """
    environ = os.environ if environ is None else environ
    overrides = {}

    if environ.get("STOREFRONT_DATABASE_URL"):
        overrides["SQLALCHEMY_DATABASE_URI"] = environ["STOREFRONT_DATABASE_URL"]
    elif environ.get("STOREFRONT_DB_PATH"):
        overrides["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{environ['STOREFRONT_DB_PATH']}"

    if "SECRET_KEY" in environ:
        overrides["SECRET_KEY"] = environ["SECRET_KEY"]
    if "STOREFRONT_STORE_TIMEOUT" in environ:
        overrides["STORE_TIMEOUT_SECONDS"] = float(environ["STOREFRONT_STORE_TIMEOUT"])
    if "STOREFRONT_CREATE_SCHEMA" in environ:
        overrides["STOREFRONT_CREATE_SCHEMA"] = _env_flag(environ["STOREFRONT_CREATE_SCHEMA"])
    if "STOREFRONT_HOST" in environ:
        overrides["HOST"] = environ["STOREFRONT_HOST"]
    if "STOREFRONT_PORT" in environ:
        overrides["PORT"] = int(environ["STOREFRONT_PORT"])
    if "FLASK_DEBUG" in environ:
        overrides["DEBUG_MODE"] = _env_flag(environ["FLASK_DEBUG"])
    return overrides


def engine_options_for(uri: str, timeout: float) -> dict:
    """
    Build SQLALCHEMY_ENGINE_OPTIONS that bound every store round-trip.
    - sqlite: busy timeout on the driver connection
    - postgresql: connect_timeout + server side statement_timeout
    - pooled engines also get pool_timeout for connection checkout
    """
    options = {"pool_pre_ping": True}
    if uri.startswith("sqlite"):
        options["connect_args"] = {"timeout": timeout, "check_same_thread": False}
        return options

    options["pool_timeout"] = timeout
    if uri.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": max(1, int(round(timeout))),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return options
