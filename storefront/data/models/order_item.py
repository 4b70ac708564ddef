from sqlalchemy import Column, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin


class OrderItemModel(TimestampMixin, Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    #produktu z historia zamowien nie da sie usunac
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
    product = relationship("ProductModel")

    def set_quantity(self, quantity: int) -> None:
        #subtotal zawsze liczony, nigdy ustawiany z zewnatrz
        self.quantity = quantity
        self.subtotal = self.unit_price * quantity

    @classmethod
    def from_cart_item(cls, cart_item) -> "OrderItemModel":
        #kopia snapshotu ceny z koszyka
        line = cls(product_id=cart_item.product_id, unit_price=cart_item.unit_price)
        line.set_quantity(cart_item.quantity)
        return line
