# storefront/repos/order_repo.py
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_by_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(selectinload(OrderModel.items))
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_all(self, status: str | None = None) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        if status is not None:
            stmt = stmt.where(OrderModel.status == status)
        return list(self.db.execute(stmt).scalars().all())

    def delete(self, order: OrderModel) -> None:
        self.db.delete(order)
        self.db.flush()

    def best_sellers(self, limit: int = 10, exclude_status: str | None = None) -> List[dict]:
        total_qty = func.sum(OrderItemModel.quantity).label("total_quantity")
        stmt = (
            select(OrderItemModel.product_id, total_qty)
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .group_by(OrderItemModel.product_id)
            .order_by(total_qty.desc(), OrderItemModel.product_id)
            .limit(limit)
        )
        if exclude_status is not None:
            stmt = stmt.where(OrderModel.status != exclude_status)

        return [
            {"product_id": product_id, "total_quantity": int(qty)}
            for product_id, qty in self.db.execute(stmt).all()
        ]
