from storefront import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text, nullable=False)
    size = db.Column(db.Text, nullable=False)
    price = db.Column(db.Float, nullable=False)

    @classmethod
    def from_row(cls, row):
        """
        Build a detached Product from an (id, name, size, price) result row.
        Raises ValueError / TypeError when a column cannot be decoded
        (NULLs or a non-numeric price left behind by another writer).
        """
        product_id, name, size, price = row
        if product_id is None or name is None or size is None or price is None:
            raise TypeError(f"NULL column in products row id={product_id}")
        return cls(id=int(product_id), name=str(name), size=str(size), price=float(price))

    def __repr__(self):
        return f"<Product id={self.id} name={self.name} size={self.size} price={self.price}>"
