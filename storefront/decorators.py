import re
from functools import wraps

from flask import abort

_PRODUCT_ID_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


def parse_product_id(raw):
    """Parse a path segment as a base-10 signed 64-bit id; None when invalid."""
    if raw is None or not _PRODUCT_ID_RE.fullmatch(raw):
        return None
    value = int(raw)
    if value < _INT64_MIN or value > _INT64_MAX:
        return None
    return value


def product_id_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        product_id = parse_product_id(kwargs.get("product_id"))
        if product_id is None:
            abort(400, description="Invalid product ID")
        kwargs["product_id"] = product_id
        return f(*args, **kwargs)
    return decorated_function
