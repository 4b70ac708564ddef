# storefront/data/models/category.py
from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin


class CategoryModel(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    subcategories = relationship(
        "SubcategoryModel",
        back_populates="category",
        order_by="SubcategoryModel.name",
    )
    products = relationship("ProductModel", back_populates="category")
