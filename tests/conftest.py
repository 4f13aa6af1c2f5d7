"""
Shared fixtures: a model host with the translation layer over in-memory SQLite
"""
import pytest
from sqlalchemy import BigInteger, String, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orm_i18n import I18N, Field, ModelHost

LANGUAGES = ["FR", "EN", "ES"]
DEFAULT_LANGUAGE = "FR"


def define_tables(host):
    """table1 has translated label/description, table2 has no translated field"""
    table1 = host.define(
        "table1",
        {
            "id": Field(BigInteger, primary_key=True, autoincrement=False),
            "label": Field(String(255), translatable=True),
            "description": Field(String(255), translatable=True),
            "reference": Field(String(255)),
        },
    )
    table2 = host.define(
        "table2",
        {
            "id": Field(BigInteger, primary_key=True, autoincrement=False),
            "label": Field(String(255)),
            "reference": Field(String(255)),
        },
        i18n={"underscored": False},
    )
    return table1, table2


@pytest.fixture
def host():
    return ModelHost()


@pytest.fixture
def i18n(host):
    """Translation layer registered before any model is defined"""
    i18n = I18N(host, languages=LANGUAGES, default_language=DEFAULT_LANGUAGE)
    i18n.init()
    return i18n


@pytest.fixture
def models(host, i18n):
    return define_tables(host)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(host, models, engine):
    """Create test database session"""
    host.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
    host.drop_all(engine)


@pytest.fixture
def instance(host, models, db_session):
    """table1 row 1 in FR (default) and EN, plus table2 row 1"""
    table1, table2 = models
    row = host.create(
        db_session,
        table1,
        {"id": 1, "label": "test", "description": "c'est un test", "reference": "xxx"},
    )
    row.add_translation({"label": "test EN", "description": "This is a test"}, "EN")
    host.create(db_session, table2, {"id": 1, "label": "test2", "reference": "yyy"})
    return row
