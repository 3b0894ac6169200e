"""
CreatorSnapshot model — daily follower/post counts per creator for growth tracking.
"""
from sqlalchemy import Column, Integer, Text, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class CreatorSnapshot(Base):
    __tablename__ = 'creator_snapshots'
    __table_args__ = (
        UniqueConstraint('discovered_creator_id', 'snapshot_date', name='uq_creator_snapshot_creator_date'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    discovered_creator_id = Column(
        Integer, ForeignKey('discovered_creators.id', ondelete='CASCADE'), nullable=False,
    )
    platform = Column(Text, nullable=False)
    platform_user_id = Column(Text, nullable=False)
    followers = Column(Integer, default=0)
    total_posts = Column(Integer, default=0)
    snapshot_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
