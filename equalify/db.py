import os
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine
from equalify.config import config

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DB_FILE = os.path.join(BASE_DIR, "db.sqlite")
DATABASE_URL = config.DATABASE_URL or f"sqlite:///{DB_FILE}"

if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
    # one shared connection, otherwise every session sees an empty database
    engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False}, poolclass=StaticPool)
elif DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, echo=False)

def init_db():
    # Import models so SQLModel.metadata includes them
    import equalify.models.user, equalify.models.group, equalify.models.expense, equalify.models.friend, equalify.models.budget
    SQLModel.metadata.create_all(engine)
