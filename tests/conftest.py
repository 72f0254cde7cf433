import pytest

from storefront import close_store, create_app
from storefront.services.product_repository import get_product_repository


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'storefront-test.db'}",
        "STOREFRONT_CREATE_SCHEMA": True,
        "STORE_TIMEOUT_SECONDS": 2,
    })
    yield app
    close_store(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def repo(app):
    with app.app_context():
        yield get_product_repository()
