"""Recipe ingredient line: a reference to a Product plus quantity and unit."""
from typing import Optional
from kitchen.domain.Product import normalize_id


class Ingredient:
    def __init__(self, product_id="", quantity: float = 1, unit: str = "pcs", product_name: Optional[str] = None):
        self.product_id = normalize_id(product_id)
        self.quantity = quantity
        self.unit = unit
        self.product_name = product_name or ""

    def refers_to(self, product) -> bool:
        '''True when this line points at `product`, by id first and then by name.'''
        if self.product_id and self.product_id == product.id:
            return True
        return bool(self.product_name) and self.product_name.strip().lower() == product.name.lower()

    def __str__(self) -> str:
        return f"{self.quantity} {self.unit} {self.product_name or self.product_id}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates an Ingredient from a dict. Accepts the older `name` key for the product name.'''
        d = dict(data) if isinstance(data, dict) else {}
        try:
            quantity = float(d.get("quantity", 1))
        except (TypeError, ValueError):
            quantity = 1
        if quantity.is_integer():
            quantity = int(quantity)
        return Ingredient(
            product_id=d.get("productId", ""),
            quantity=quantity,
            unit=d.get("unit") or "pcs",
            product_name=d.get("productName") or d.get("name"),
        )

    def to_dict(self):
        data = {"productId": self.product_id, "quantity": self.quantity, "unit": self.unit}
        if self.product_name:
            data["productName"] = self.product_name
        return data
