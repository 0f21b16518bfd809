from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from tests.main import Item, app, engine, get_session

INTEGERS = [1, 2, 3, 4, 5, 5, 5]
STRINGS = ["yo", "hi", "hello", "hola", "好！", "хорошо", ""]
DATETIMES = [datetime(1900, 1, 1), datetime(2000, 1, 1), datetime(2100, 1, 1)]
BOOLEANS = [True, False]


def _at(values, i):
    return values[i] if i < len(values) else None


@pytest.fixture(name="session")
def session_fixture():
    """Fresh database with ten items, the last ones partially empty."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all(
            [
                Item(
                    integer=_at(INTEGERS, i),
                    string=_at(STRINGS, i),
                    created_at=_at(DATETIMES, i),
                    boolean=_at(BOOLEANS, i),
                )
                for i in range(10)
            ]
        )
        session.commit()
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
