from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from storefront.decorators import product_id_required
from storefront.services.product_repository import get_product_repository

product_bp = Blueprint("product", __name__)


def _redirect_to_index():
    return redirect(url_for("product.index"), code=303)


# --- 製品一覧（名前フィルタ付き） ---
@product_bp.route("/", methods=["GET"])
def index():
    filter_text = request.args.get("filter", "")
    products = get_product_repository().list_products(filter_text)
    current_app.logger.info("[ROUTE] / filter=%r rows=%d", filter_text, len(products))
    return render_template("product_list.html", products=products, filter=filter_text)


# --- 製品削除 ---
@product_bp.route("/delete/", defaults={"product_id": ""}, methods=["POST"])
@product_bp.route("/delete/<product_id>", methods=["POST"])
@product_id_required
def delete(product_id):
    get_product_repository().delete_product(product_id)
    flash("Product deleted.", "success")
    return _redirect_to_index()


# --- 新規登録フォーム ---
@product_bp.route("/add-product", methods=["GET"])
def add_form():
    return render_template("product_add.html")


@product_bp.route("/add-product-post", methods=["POST"])
def add_submit():
    name = request.form.get("name", "")
    size = request.form.get("size", "")
    price = request.form.get("price", "")
    get_product_repository().create_product(name, size, price)
    flash("Product added.", "success")
    return _redirect_to_index()


# --- 編集フォーム ---
@product_bp.route("/edit/", defaults={"product_id": ""}, methods=["GET"])
@product_bp.route("/edit/<product_id>", methods=["GET"])
@product_id_required
def edit_form(product_id):
    product = get_product_repository().get_product(product_id)
    return render_template("product_edit.html", product=product)


@product_bp.route("/edit-product-post/", defaults={"product_id": ""}, methods=["POST"])
@product_bp.route("/edit-product-post/<product_id>", methods=["POST"])
@product_id_required
def edit_submit(product_id):
    name = request.form.get("name", "")
    size = request.form.get("size", "")
    price = request.form.get("price", "")
    get_product_repository().update_product(product_id, name, size, price)
    flash("Product updated.", "success")
    return _redirect_to_index()
