from contextlib import contextmanager

from flask import current_app
from sqlalchemy import delete, select, text, type_coerce, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from storefront.errors import ProductNotFound, StoreError, StoreTimeout
from storefront.models.product import Product

EXTENSION_KEY = "product_repository"

# ドライバが返すタイムアウト系メッセージ（sqlite / postgresql）
_TIMEOUT_MARKERS = (
    "database is locked",
    "statement timeout",
    "timeout expired",
    "timed out",
)


def get_product_repository():
    return current_app.extensions[EXTENSION_KEY]


def _is_timeout(exc):
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, OperationalError):
        msg = str(exc.orig).lower()
        return any(marker in msg for marker in _TIMEOUT_MARKERS)
    return False


def _coerce_price(raw, operation):
    # numeric 列への代入と同じく、数値に変換できない値はストア側エラー扱い
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        current_app.logger.error("[DB] %s rejected price %r", operation, raw)
        raise StoreError(operation, f"invalid input syntax for numeric price: {raw!r}")


class ProductRepository:
    """
    Data access for the products table.

    Every method runs exactly one statement in its own transaction on the
    Flask-SQLAlchemy scoped session, so concurrent requests never share
    an open transaction.
    """

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    @contextmanager
    def _operation(self, name):
        try:
            yield self.session
        except SQLAlchemyError as e:
            try:
                self.session.rollback()
            except SQLAlchemyError:
                current_app.logger.exception("[DB] rollback after %s failed", name)
            if _is_timeout(e):
                current_app.logger.error("[DB] %s timed out: %s", name, e)
                raise StoreTimeout(name, str(e)) from e
            current_app.logger.exception("[DB] %s failed: %s", name, e)
            raise StoreError(name, str(e)) from e

    def _columns(self):
        # price は生の値で受け取り、Product.from_row でデコードする
        return select(
            Product.id,
            Product.name,
            Product.size,
            type_coerce(Product.price, self.db.Text).label("price"),
        )

    def ping(self):
        with self.db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def list_products(self, filter_text=None):
        stmt = self._columns()
        if filter_text:
            stmt = stmt.where(Product.name.icontains(filter_text, autoescape=True))
        stmt = stmt.order_by(Product.id)

        with self._operation("list_products") as session:
            rows = session.execute(stmt).all()

        products = []
        for row in rows:
            try:
                products.append(Product.from_row(row))
            except (TypeError, ValueError) as e:
                current_app.logger.warning("[PRODUCT] skipping undecodable row id=%s: %s", row[0], e)
        return products

    def get_product(self, product_id):
        stmt = self._columns().where(Product.id == product_id)
        with self._operation("get_product") as session:
            row = session.execute(stmt).first()
        if row is None:
            raise ProductNotFound(product_id)
        try:
            return Product.from_row(row)
        except (TypeError, ValueError) as e:
            current_app.logger.error("[PRODUCT] cannot decode row id=%s: %s", product_id, e)
            raise StoreError("get_product", str(e)) from e

    def create_product(self, name, size, price):
        product = Product(name=name, size=size, price=_coerce_price(price, "create_product"))
        with self._operation("create_product") as session:
            session.add(product)
            session.flush()
            product_id = product.id
            session.commit()
        current_app.logger.info(
            "[PRODUCT] added id=%s name=%s size=%s price=%s", product_id, name, size, price
        )
        return product_id

    def update_product(self, product_id, name, size, price):
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(name=name, size=size, price=_coerce_price(price, "update_product"))
            .execution_options(synchronize_session=False)
        )
        with self._operation("update_product") as session:
            result = session.execute(stmt)
            session.commit()
        if result.rowcount:
            current_app.logger.info("[PRODUCT] updated id=%s", product_id)
        else:
            current_app.logger.warning("[PRODUCT] update matched no row id=%s", product_id)
        return result.rowcount

    def delete_product(self, product_id):
        stmt = delete(Product).where(Product.id == product_id).execution_options(synchronize_session=False)
        with self._operation("delete_product") as session:
            result = session.execute(stmt)
            session.commit()
        if result.rowcount:
            current_app.logger.info("[PRODUCT] deleted id=%s", product_id)
        else:
            current_app.logger.warning("[PRODUCT] delete matched no row id=%s", product_id)
        return result.rowcount
