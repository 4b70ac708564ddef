from decimal import Decimal

from sqlalchemy import Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin


class CartItemModel(TimestampMixin, Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    quantity = Column(Integer, nullable=False)
    #cena z chwili dodania do koszyka, nie sledzi pozniejszych zmian ceny produktu
    unit_price = Column(Numeric(10, 2), nullable=False)

    product = relationship("ProductModel")

    __table_args__ = (UniqueConstraint("user_id", "product_id", name="u_user_product"),)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity
