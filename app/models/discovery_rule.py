"""
AutoDiscoveryRule model — operator-defined search queries + follower bounds.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from app.database import Base


class AutoDiscoveryRule(Base):
    __tablename__ = 'auto_discovery_rules'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    search_queries = Column(JSON, nullable=False, default=list)   # ordered
    target_niches = Column(JSON, default=list)
    min_followers = Column(Integer, nullable=True)
    max_followers = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_run_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Fields an operator may set through the rules API
    EDITABLE = ('name', 'search_queries', 'target_niches', 'min_followers', 'max_followers', 'is_active')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'search_queries': self.search_queries or [],
            'target_niches': self.target_niches or [],
            'min_followers': self.min_followers,
            'max_followers': self.max_followers,
            'is_active': self.is_active,
            'last_run_at': self.last_run_at.isoformat() if self.last_run_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
