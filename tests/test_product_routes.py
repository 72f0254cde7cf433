"""HTTP-level tests for the product blueprint using Flask's test client."""

import pytest
from jinja2 import TemplateNotFound

from storefront.errors import StoreError, StoreTimeout
from storefront.services.product_repository import ProductRepository


def _body(response):
    return response.get_data(as_text=True)


@pytest.fixture
def no_store_access(monkeypatch):
    """Fail the test if any repository method is reached."""
    calls = []

    def _forbidden(name):
        def _call(self, *args, **kwargs):
            calls.append(name)
            raise AssertionError(f"unexpected store access: {name}")
        return _call

    for name in ("list_products", "get_product", "create_product", "update_product", "delete_product"):
        monkeypatch.setattr(ProductRepository, name, _forbidden(name))
    return calls


class TestIndex:

    def test_empty_list_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.mimetype == "text/html"
        body = _body(response)
        assert "Welcome to the Online Store!" in body
        assert 'name="filter"' in body

    def test_filter_narrows_and_is_echoed(self, client, repo):
        repo.create_product("Widget", "M", "9.99")
        repo.create_product("Gadget", "L", "24.5")

        body = _body(client.get("/", query_string={"filter": "WID"}))

        assert "Widget" in body
        assert "Gadget" not in body
        assert 'value="WID"' in body

    def test_store_error_is_plain_text_500(self, client, monkeypatch):
        def _fail(self, filter_text=None):
            raise StoreError("list_products", "connection refused")
        monkeypatch.setattr(ProductRepository, "list_products", _fail)

        response = client.get("/")

        assert response.status_code == 500
        assert response.mimetype == "text/plain"
        assert _body(response) == "Error accessing the product database"

    def test_store_timeout_is_503(self, client, monkeypatch):
        def _slow(self, filter_text=None):
            raise StoreTimeout("list_products", "statement timeout")
        monkeypatch.setattr(ProductRepository, "list_products", _slow)

        response = client.get("/")

        assert response.status_code == 503
        assert response.mimetype == "text/plain"


class TestEscaping:

    def test_script_name_renders_as_text(self, client, repo):
        repo.create_product("<script>alert(1)</script>", "M", "1")

        body = _body(client.get("/"))

        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
        assert "<script>" not in body

    def test_filter_echo_is_escaped(self, client):
        body = _body(client.get("/", query_string={"filter": '"><b>x</b>'}))
        assert "<b>x</b>" not in body
        assert "&#34;&gt;&lt;b&gt;x&lt;/b&gt;" in body

    def test_edit_form_values_are_escaped(self, client, repo):
        product_id = repo.create_product('Say "hi"', "<M>", "1")

        body = _body(client.get(f"/edit/{product_id}"))

        assert 'value="Say &#34;hi&#34;"' in body
        assert 'value="&lt;M&gt;"' in body


class TestAddProduct:

    def test_add_form(self, client):
        response = client.get("/add-product")
        assert response.status_code == 200
        body = _body(response)
        assert 'action="/add-product-post"' in body
        assert 'name="price"' in body

    def test_add_submit_redirects_with_303(self, client, repo):
        response = client.post("/add-product-post", data={"name": "Widget", "size": "M", "price": "9.99"})

        assert response.status_code == 303
        assert response.headers["Location"].endswith("/")
        [product] = repo.list_products()
        assert (product.name, product.size, product.price) == ("Widget", "M", 9.99)

    def test_add_submit_flashes_on_list_page(self, client):
        response = client.post(
            "/add-product-post",
            data={"name": "Widget", "size": "M", "price": "9.99"},
            follow_redirects=True,
        )
        assert response.status_code == 200
        body = _body(response)
        assert "Product added." in body
        assert "Widget" in body

    def test_add_submit_bad_price_is_500(self, client, repo):
        response = client.post("/add-product-post", data={"name": "Widget", "size": "M", "price": "lots"})
        assert response.status_code == 500
        assert repo.list_products() == []

    def test_get_on_add_submit_is_405(self, client, no_store_access):
        response = client.get("/add-product-post")
        assert response.status_code == 405
        assert _body(response) == "Method not supported"
        assert "POST" in response.headers["Allow"]
        assert no_store_access == []

    def test_template_error_is_500(self, client, monkeypatch):
        def _broken(name, **context):
            raise TemplateNotFound(name)
        monkeypatch.setattr("storefront.routes.product.render_template", _broken)

        response = client.get("/add-product")

        assert response.status_code == 500
        assert _body(response) == "Error rendering page"


class TestEditProduct:

    def test_edit_form_is_prefilled(self, client, repo):
        product_id = repo.create_product("Widget", "M", "9.99")

        response = client.get(f"/edit/{product_id}")

        assert response.status_code == 200
        body = _body(response)
        assert 'value="Widget"' in body
        assert 'value="M"' in body
        assert 'value="9.99"' in body
        assert f'action="/edit-product-post/{product_id}"' in body

    @pytest.mark.parametrize("bad_id", ["", "abc", "1.5", "12abc", "99999999999999999999"])
    def test_edit_form_bad_id_is_400_without_store_access(self, client, no_store_access, bad_id):
        response = client.get(f"/edit/{bad_id}")
        assert response.status_code == 400
        assert _body(response) == "Invalid product ID"
        assert no_store_access == []

    def test_edit_form_unknown_id_is_404(self, client):
        response = client.get("/edit/424242")
        assert response.status_code == 404
        assert _body(response) == "Product not found"

    def test_edit_submit_updates_and_redirects(self, client, repo):
        product_id = repo.create_product("Widget", "M", "9.99")

        response = client.post(
            f"/edit-product-post/{product_id}",
            data={"name": "Widget Pro", "size": "L", "price": "12.5"},
        )

        assert response.status_code == 303
        product = repo.get_product(product_id)
        assert (product.name, product.size, product.price) == ("Widget Pro", "L", 12.5)

    def test_edit_submit_unknown_id_still_redirects(self, client, repo):
        repo.create_product("Widget", "M", "9.99")

        response = client.post("/edit-product-post/999", data={"name": "X", "size": "S", "price": "1"})

        assert response.status_code == 303
        assert [p.name for p in repo.list_products()] == ["Widget"]

    @pytest.mark.parametrize("bad_id", ["", "abc", "-"])
    def test_edit_submit_bad_id_is_400(self, client, no_store_access, bad_id):
        response = client.post(f"/edit-product-post/{bad_id}", data={"name": "X", "size": "S", "price": "1"})
        assert response.status_code == 400
        assert no_store_access == []

    def test_get_on_edit_submit_is_405(self, client):
        assert client.get("/edit-product-post/1").status_code == 405


class TestDeleteProduct:

    def test_delete_redirects_and_removes(self, client, repo):
        product_id = repo.create_product("Widget", "M", "9.99")

        response = client.post(f"/delete/{product_id}")

        assert response.status_code == 303
        assert repo.list_products() == []

    def test_delete_unknown_id_still_redirects(self, client):
        assert client.post("/delete/31337").status_code == 303

    @pytest.mark.parametrize("bad_id", ["", "abc", "4x"])
    def test_delete_bad_id_is_400(self, client, no_store_access, bad_id):
        response = client.post(f"/delete/{bad_id}")
        assert response.status_code == 400
        assert no_store_access == []

    def test_get_on_delete_is_405(self, client, no_store_access):
        response = client.get("/delete/1")
        assert response.status_code == 405
        assert no_store_access == []


def test_widget_lifecycle(client, repo):
    client.post("/add-product-post", data={"name": "Widget", "size": "M", "price": "9.99"})
    [product] = repo.list_products("")
    assert (product.name, product.size, product.price) == ("Widget", "M", 9.99)

    edit_page = _body(client.get(f"/edit/{product.id}"))
    assert 'value="Widget"' in edit_page

    assert client.post(f"/delete/{product.id}").status_code == 303
    assert repo.list_products("") == []


def test_health(client, no_store_access):
    response = client.get("/health")
    assert response.status_code == 200
    assert _body(response) == "OK"
