"""SQLAlchemy database models and setup."""

import json
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from fitscore.config import settings

Base = declarative_base()


class DBConfiguration(Base):
    """Stored configuration section (one row per criteria section)."""

    __tablename__ = "configuration"

    id = Column(String(50), primary_key=True)  # "industries" or "requirements"
    data = Column(Text, nullable=False)  # JSON dict of lists
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_data(self) -> dict:
        return json.loads(self.data) if self.data else {}

    def set_data(self, data: dict):
        self.data = json.dumps(data)


# Database initialization
def init_db(db_url: Optional[str] = None) -> sessionmaker:
    """Initialize database and return session maker."""
    url = db_url or settings.database_url
    engine = create_engine(url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
