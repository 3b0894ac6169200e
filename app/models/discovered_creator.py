"""
DiscoveredCreator model — one row per unique channel, keyed by (platform, platform_user_id).
"""
from sqlalchemy import Column, Integer, Float, Text, Boolean, DateTime, JSON, UniqueConstraint, Index
from sqlalchemy.sql import func

from app.database import Base


class DiscoveredCreator(Base):
    __tablename__ = 'discovered_creators'

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform = Column(Text, nullable=False)
    platform_user_id = Column(Text, nullable=False)   # YouTube channel ID
    platform_username = Column(Text, default='')     # handle, or channel ID when none
    display_name = Column(Text, default='')
    profile_image_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)                 # ≤ 500 chars
    followers = Column(Integer, default=0)
    total_posts = Column(Integer, default=0)
    avg_views = Column(Integer, default=0)
    niche = Column(JSON, default=list)
    status = Column(Text, nullable=False, default='active')
    is_hidden = Column(Boolean, default=False)
    growth_rate_7d = Column(Float, nullable=True)
    growth_rate_30d = Column(Float, nullable=True)
    discovered_at = Column(DateTime(timezone=True), server_default=func.now())
    last_scraped_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('platform', 'platform_user_id', name='uq_discovered_creator_platform_user'),
        Index('ix_discovered_creators_last_scraped_at', 'last_scraped_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'platform': self.platform,
            'platform_user_id': self.platform_user_id,
            'platform_username': self.platform_username,
            'display_name': self.display_name,
            'profile_image_url': self.profile_image_url,
            'bio': self.bio,
            'followers': self.followers,
            'total_posts': self.total_posts,
            'avg_views': self.avg_views,
            'niche': self.niche or [],
            'status': self.status,
            'growth_rate_7d': self.growth_rate_7d,
            'growth_rate_30d': self.growth_rate_30d,
            'last_scraped_at': self.last_scraped_at.isoformat() if self.last_scraped_at else None,
        }
