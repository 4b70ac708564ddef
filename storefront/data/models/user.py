from sqlalchemy import Boolean, Column, Integer, String

from storefront.data.database import Base
from storefront.data.models.mixins import TimestampMixin


class UserModel(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(20), nullable=False, default="client")
    active = Column(Boolean, nullable=False, default=True)
