"""Catalog facade bundling repositories and memberships over one store."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog

from ..core.db.identifiers import IdentifierAllocator
from ..core.db.models import Channel, Series, Video
from ..core.db.relationships import VideoMembership
from ..core.db.repository import ChannelRepository, SeriesRepository, VideoRepository
from ..core.db.store import CHANNEL, SERIES, GraphStore

logger = structlog.get_logger(__name__)

SAMPLE_CHANNEL_NAME = "raocow"
SAMPLE_SERIES_NAME = "super marisa world"
SAMPLE_VIDEO_TITLE = "Super marisa world {index}"
SAMPLE_VIDEO_YOUTUBE_ID = "blarg"


class Catalog:
    """
    Entry point to the channel/series/video graph.

    Every repository and membership manager shares the injected store and
    identifier allocator.

    Example:
        >>> async with SQLiteGraphStore(Path("raocow.db")) as store:
        ...     catalog = Catalog(store)
        ...     result = await catalog.series.save(Series(name="Super Marisa World"))
        ...     await catalog.series_videos.add_video(result.value.id, "super-marisa-world-1")
    """

    def __init__(
        self,
        store: GraphStore,
        allocator: Optional[IdentifierAllocator] = None,
        conflict_retries: int = ChannelRepository.DEFAULT_CONFLICT_RETRIES,
    ):
        self.store = store
        self.allocator = allocator or IdentifierAllocator()
        self.channels = ChannelRepository(store, self.allocator, conflict_retries)
        self.series = SeriesRepository(store, self.allocator, conflict_retries)
        self.videos = VideoRepository(store, self.allocator, conflict_retries)
        self.channel_videos = VideoMembership(store, CHANNEL)
        self.series_videos = VideoMembership(store, SERIES)


@dataclass
class SeedResult:
    """Result of a sample data run."""

    channel_id: Optional[str] = None
    series_id: Optional[str] = None
    video_ids: List[str] = field(default_factory=list)
    failed_count: int = 0
    failures: List[Dict[str, str]] = field(default_factory=list)
    duration_seconds: float = 0.0


async def seed_sample_data(catalog: Catalog, video_count: int = 100) -> SeedResult:
    """
    Populate the catalog with a demo channel, series and videos.

    Creates the "raocow" channel, the "super marisa world" series and
    video_count videos, each attached to both. Failures are counted and
    logged rather than raised, so a partial run still reports what it made.

    Args:
        catalog: Catalog to write into
        video_count: Number of videos to create

    Returns:
        SeedResult with the created ids and failure statistics
    """
    start_time = time.time()
    result = SeedResult()

    def record_failure(what: str, message: Optional[str]) -> None:
        result.failed_count += 1
        result.failures.append({"item": what, "error": message or "unknown error"})
        logger.warning("seed_item_failed", item=what, error=message)

    logger.info("seed_start", video_count=video_count)

    channel_result = await catalog.channels.save(
        Channel(youtube_id=SAMPLE_CHANNEL_NAME, name=SAMPLE_CHANNEL_NAME)
    )
    if channel_result:
        result.channel_id = channel_result.value.id
    else:
        record_failure("channel", channel_result.message)

    series_result = await catalog.series.save(Series(name=SAMPLE_SERIES_NAME))
    if series_result:
        result.series_id = series_result.value.id
    else:
        record_failure("series", series_result.message)

    for index in range(video_count):
        title = SAMPLE_VIDEO_TITLE.format(index=index)
        video_result = await catalog.videos.save(
            Video(
                title=title,
                youtube_id=SAMPLE_VIDEO_YOUTUBE_ID,
                published=datetime.now(timezone.utc),
            )
        )
        if not video_result:
            record_failure(title, video_result.message)
            continue

        video_id = video_result.value.id
        result.video_ids.append(video_id)

        if result.channel_id is not None:
            linked = await catalog.channel_videos.add_video(result.channel_id, video_id)
            if not linked:
                record_failure(f"{title} -> channel", linked.message)

        if result.series_id is not None:
            linked = await catalog.series_videos.add_video(result.series_id, video_id)
            if not linked:
                record_failure(f"{title} -> series", linked.message)

        # Log progress every 25 videos
        if (index + 1) % 25 == 0:
            logger.info("seed_progress", processed=index + 1, total=video_count)

    result.duration_seconds = time.time() - start_time

    logger.info(
        "seed_complete",
        channel_id=result.channel_id,
        series_id=result.series_id,
        created=len(result.video_ids),
        failed=result.failed_count,
        duration=result.duration_seconds,
    )

    return result
