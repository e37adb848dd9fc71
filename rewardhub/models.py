from sqlalchemy import JSON, TIMESTAMP, Column, String
from sqlalchemy.sql import func

from rewardhub.database import Base


class Document(Base):
    """
    One record of the path-addressed store.

    ``collection`` + ``id`` form the path; ``data`` holds the record's field
    set exactly as the API sees it (camelCase keys, ISO date strings).
    """
    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

