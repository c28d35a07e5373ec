from sqlalchemy import Column, BigInteger, Text, DateTime
from ..db import Base


class Incident(Base):
    __tablename__ = "incidents"

    # Source-assigned message id; dedup key and pagination cursor
    tweet_id = Column(BigInteger, primary_key=True, autoincrement=False)

    # As printed on the first line, not unique on its own
    incident_number = Column("id", Text, index=True)

    location = Column(Text)
    community = Column(Text)
    incident_type = Column("type", Text)

    # Space-joined, sorted unit codes
    apparatuses = Column(Text)
    stations = Column("station", Text)

    created_at = Column(DateTime(timezone=True), index=True)

    tweet_text = Column(Text)
    tweet_created_at = Column(DateTime(timezone=True))

    ingested_at = Column(DateTime(timezone=True))
