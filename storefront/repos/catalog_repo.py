# storefront/repos/catalog_repo.py
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.category import CategoryModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.subcategory import SubcategoryModel


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def get_by_name(self, name: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.name == name)
        ).scalar_one_or_none()

    def list(self, active: bool | None = None, with_subcategories: bool = False) -> List[CategoryModel]:
        stmt = select(CategoryModel).order_by(CategoryModel.name)
        if active is not None:
            stmt = stmt.where(CategoryModel.active == active)
        if with_subcategories:
            stmt = stmt.options(selectinload(CategoryModel.subcategories))
        return list(self.db.execute(stmt).scalars().all())

    def add(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.flush()
        return category

    def delete(self, category: CategoryModel) -> None:
        self.db.delete(category)
        self.db.flush()

    def count_subcategories(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(SubcategoryModel.id)).where(SubcategoryModel.category_id == category_id)
        ).scalar_one()

    def count_products(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def deactivate_subcategories(self, category_id: int) -> int:
        result = self.db.execute(
            update(SubcategoryModel)
            .where(SubcategoryModel.category_id == category_id, SubcategoryModel.active.is_(True))
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def deactivate_products(self, category_id: int) -> int:
        #produkty przypiete bezposrednio do kategorii oraz te z jej podkategorii
        subcategory_ids = select(SubcategoryModel.id).where(SubcategoryModel.category_id == category_id)
        result = self.db.execute(
            update(ProductModel)
            .where(
                or_(
                    ProductModel.category_id == category_id,
                    ProductModel.subcategory_id.in_(subcategory_ids),
                ),
                ProductModel.active.is_(True),
            )
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class SubcategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, subcategory_id: int) -> SubcategoryModel | None:
        return self.db.get(SubcategoryModel, subcategory_id)

    def get_by_name(self, category_id: int, name: str) -> SubcategoryModel | None:
        return self.db.execute(
            select(SubcategoryModel).where(
                SubcategoryModel.category_id == category_id,
                SubcategoryModel.name == name,
            )
        ).scalar_one_or_none()

    def list(self, category_id: int | None = None, active: bool | None = None) -> List[SubcategoryModel]:
        stmt = select(SubcategoryModel).order_by(SubcategoryModel.name)
        if category_id is not None:
            stmt = stmt.where(SubcategoryModel.category_id == category_id)
        if active is not None:
            stmt = stmt.where(SubcategoryModel.active == active)
        return list(self.db.execute(stmt).scalars().all())

    def add(self, subcategory: SubcategoryModel) -> SubcategoryModel:
        self.db.add(subcategory)
        self.db.flush()
        return subcategory

    def delete(self, subcategory: SubcategoryModel) -> None:
        self.db.delete(subcategory)
        self.db.flush()

    def count_products(self, subcategory_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.subcategory_id == subcategory_id)
        ).scalar_one()

    def deactivate_products(self, subcategory_id: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.subcategory_id == subcategory_id, ProductModel.active.is_(True))
            .values(active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_for_update(self, product_ids: Iterable[int]) -> Dict[int, ProductModel]:
        #SELECT ... FOR UPDATE, zawsze rosnaco po id zeby dwie transakcje nie zakleszczyly sie
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {p.id: p for p in rows}

    def list(
        self,
        category_id: int | None = None,
        subcategory_id: int | None = None,
        active: bool | None = None,
        in_stock: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[ProductModel], int]:
        filters = []
        if category_id is not None:
            filters.append(ProductModel.category_id == category_id)
        if subcategory_id is not None:
            filters.append(ProductModel.subcategory_id == subcategory_id)
        if active is not None:
            filters.append(ProductModel.active == active)
        if in_stock is True:
            filters.append(ProductModel.stock > 0)
        elif in_stock is False:
            filters.append(ProductModel.stock == 0)
        if search:
            filters.append(ProductModel.name.ilike(f"%{search}%"))

        total = self.db.execute(
            select(func.count(ProductModel.id)).where(*filters)
        ).scalar_one()

        items = self.db.execute(
            select(ProductModel)
            .where(*filters)
            .order_by(ProductModel.name, ProductModel.id)
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()

        return list(items), total

    def add(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.flush()

    def count_order_items(self, product_id: int) -> int:
        return self.db.execute(
            select(func.count(OrderItemModel.id)).where(OrderItemModel.product_id == product_id)
        ).scalar_one()

    def delete_cart_items(self, product_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ---- stan magazynowy, warunkowe UPDATE sprawdzane przez rowcount ----

    def decrease_stock(self, product_id: int, quantity: int) -> int:
        #update set stock = stock - q where id = ? and stock >= q
        #0 rows affected => za malo towaru, nic nie zostalo zmienione
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increase_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_stock(self, product_id: int, value: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def stats(self, *filters) -> dict:
        row = self.db.execute(
            select(
                func.count(ProductModel.id),
                func.coalesce(func.sum(case((ProductModel.active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(ProductModel.stock), 0),
                func.coalesce(func.sum(ProductModel.price * ProductModel.stock), 0),
            ).where(*filters)
        ).one()

        total, active, stock_total, value = row
        return {
            "total_products": total,
            "active_products": int(active),
            "inactive_products": total - int(active),
            "stock_total": int(stock_total),
            "inventory_value": Decimal(str(value)).quantize(Decimal("0.01")),
        }
