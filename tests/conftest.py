from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import storefront.data.models  # noqa: F401
from storefront.api.deps import get_storage
from storefront.data.database import Base, build_engine, get_db
from storefront.data.models.user import UserModel
from storefront.main import create_app
from storefront.services.catalog_service import CatalogService
from storefront.services.storage_service import LocalImageStorage


@pytest.fixture
def engine():
    # jedna baza in-memory wspoldzielona przez wszystkie sesje testu
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalImageStorage(upload_path=tmp_path / "uploads")


@pytest.fixture
def client(session_factory, storage):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    # bez "with" - lifespan (init_db na prawdziwym DATABASE_URL) nie rusza
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    alice = UserModel(name="Alice", email="alice@example.com", role="client")
    bob = UserModel(name="Bob", email="bob@example.com", role="client")
    staff = UserModel(name="Stan", email="staff@example.com", role="staff")
    db.add_all([alice, bob, staff])
    db.commit()
    return {"alice": alice.id, "bob": bob.id, "staff": staff.id}


@pytest.fixture
def catalog(db, storage):
    """Beverages -> Soda -> Cola (1.50, stock 10)."""
    svc = CatalogService(db, storage=storage)
    beverages = svc.create_category("Beverages", "Drinks")
    soda = svc.create_subcategory(beverages.id, "Soda")
    cola = svc.create_product(
        category_id=beverages.id,
        subcategory_id=soda.id,
        name="Cola",
        price=Decimal("1.50"),
        stock=10,
    )
    return {"category": beverages.id, "subcategory": soda.id, "product": cola.id}
