import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from jinja2 import TemplateError
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from .config import Config, engine_options_for, env_overrides
from .errors import ProductNotFound, StartupFailure, StoreError

db = SQLAlchemy()

PLAIN_TEXT = {"Content-Type": "text/plain; charset=utf-8"}


def register_error_handlers(app):
    """Every error leaves the app as a plain-text body plus status code."""

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code is None:
            return e
        headers = dict(PLAIN_TEXT)
        if e.code == 405:
            valid_methods = getattr(e, "valid_methods", None)
            if valid_methods:
                headers["Allow"] = ", ".join(valid_methods)
            return "Method not supported", 405, headers
        return e.description or e.name, e.code, headers

    @app.errorhandler(ProductNotFound)
    def product_not_found(e):
        app.logger.info("[ERROR] %s", e)
        return e.message, e.status_code, PLAIN_TEXT

    @app.errorhandler(StoreError)
    def store_error(e):
        # StoreTimeout もここで受ける（status_code=503）
        app.logger.error("[ERROR] store operation %s failed: %s", e.operation, e.detail)
        return e.message, e.status_code, PLAIN_TEXT

    @app.errorhandler(TemplateError)
    def template_error(e):
        app.logger.exception("[ERROR] template rendering failed: %s", e)
        return "Error rendering page", 500, PLAIN_TEXT


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(engine):
    """
    sqlite の組み込み lower() は ASCII しか畳み込まないため、
    接続ごとに Python の str.lower で置き換える（icontains フィルタ用）
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def close_store(app):
    with app.app_context():
        db.engine.dispose()
    app.logger.info("[DB] connection pool closed")


def create_app(config_overrides=None) -> Flask:
    """Flask アプリ本体を生成するファクトリ"""
    from flask.signals import template_rendered
    from storefront.services.product_repository import EXTENSION_KEY, ProductRepository

    app = Flask(__name__, template_folder="templates")
    app.config.from_object(Config)
    app.config.update(env_overrides())
    if config_overrides:
        app.config.update(config_overrides)

    # logging
    debug_mode = app.config.get("DEBUG_MODE", False)
    logging.basicConfig(
        level=logging.DEBUG if debug_mode else logging.INFO,
        format='[%(asctime)s] %(levelname)s in %(module)s: %(message)s',
    )
    app.logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        engine_options_for(uri, app.config["STORE_TIMEOUT_SECONDS"]),
    )

    if debug_mode:
        app.config["TEMPLATES_AUTO_RELOAD"] = True
        app.jinja_env.auto_reload = True
    else:
        app.config["TEMPLATES_AUTO_RELOAD"] = False

    db.init_app(app)
    repository = ProductRepository(db)
    app.extensions[EXTENSION_KEY] = repository

    # ストアに接続できなければここで起動失敗
    with app.app_context():
        safe_url = db.engine.url.render_as_string(hide_password=True)
        register_sqlite_functions(db.engine)
        try:
            if app.config.get("STOREFRONT_CREATE_SCHEMA"):
                from storefront.models.product import Product  # noqa: F401
                db.create_all()
            repository.ping()
        except SQLAlchemyError as e:
            app.logger.error("[DB] Error connecting to the database %s: %s", safe_url, e)
            raise StartupFailure(f"database unreachable: {safe_url}") from e
        app.logger.info("[DB] Connected to the database: %s", safe_url)

    register_error_handlers(app)

    from storefront.routes.product import product_bp
    app.register_blueprint(product_bp)

    def log_routes():
        logging.info("[Flask routes] URL map:")
        for rule in app.url_map.iter_rules():
            logging.info("%s %s -> %s", ",".join(sorted(rule.methods)), rule.rule, rule.endpoint)

    with app.app_context():
        log_routes()

    @template_rendered.connect_via(app)
    def when_template_rendered(sender, template, context, **extra):
        sender.logger.debug(
            "[TEMPLATE-RENDERED] name=%s context_keys=%s",
            template.name,
            list(context.keys())[:10],
        )

    # ヘルスチェック（DB 非依存）
    @app.route("/health")
    def health():
        return "OK", 200, PLAIN_TEXT

    app.logger.info("[BOOT] create_app completed")
    return app
