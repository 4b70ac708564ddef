# storefront/data/models/subcategory.py
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin


class SubcategoryModel(TimestampMixin, Base):
    __tablename__ = "subcategories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    active = Column(Boolean, nullable=False, default=True)

    category = relationship("CategoryModel", back_populates="subcategories")
    products = relationship("ProductModel", back_populates="subcategory")

    #nazwa unikalna tylko w obrebie kategorii
    __table_args__ = (UniqueConstraint("category_id", "name", name="u_category_subcategory_name"),)
