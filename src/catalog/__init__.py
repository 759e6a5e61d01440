"""
Video Catalog.

Components:
- VideoRecord / Question: immutable catalog records
- Level: parsed level labels with an explicit curriculum ranking
- HttpCatalogAdapter / JsonCatalogAdapter: catalog sources
- load_catalog: fetch + subject/track filter
"""
from src.catalog.adapter import (
    CatalogAdapter,
    HttpCatalogAdapter,
    JsonCatalogAdapter,
    filter_catalog,
    load_catalog,
    parse_records,
)
from src.catalog.levels import (
    Level,
    accepts_video_level,
    is_at_level,
    is_video_for_level,
    level_sort_key,
)
from src.catalog.models import Question, VideoRecord

__all__ = [
    # Records
    "VideoRecord",
    "Question",
    # Levels
    "Level",
    "level_sort_key",
    "is_at_level",
    "is_video_for_level",
    "accepts_video_level",
    # Sources
    "CatalogAdapter",
    "HttpCatalogAdapter",
    "JsonCatalogAdapter",
    "parse_records",
    "filter_catalog",
    "load_catalog",
]
