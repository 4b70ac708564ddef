# storefront/data/models/product.py
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin
from storefront.utils.settings import PUBLIC_BASE_URL


class ProductModel(TimestampMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    image = Column(String(255), nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id"), nullable=False, index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    category = relationship("CategoryModel", back_populates="products")
    subcategory = relationship("SubcategoryModel", back_populates="products")

    #stock i cena nigdy ujemne, rowniez na poziomie bazy
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )

    @property
    def image_url(self) -> str | None:
        if not self.image:
            return None
        return f"{PUBLIC_BASE_URL.rstrip('/')}/uploads/{self.image}"
