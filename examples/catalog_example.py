"""
Example demonstrating catalog functionality.

This example shows how to:
1. Open a catalog on the configured graph store
2. Create a channel, a series and videos
3. Attach videos to both containers
4. List a container's videos and a video's containers
5. Update and delete entities
6. Seed the sample data set
"""

import asyncio
from datetime import datetime, timezone

import raocow
from raocow import Channel, Series, Video, seed_sample_data


async def main():
    """Run catalog example."""
    print("=" * 70)
    print("Catalog Example")
    print("=" * 70)

    print("\n1. Configuring raocow...")
    config = raocow.configure()
    print(f"   Backend: {config.database.backend}")
    print(f"   Database: {config.get_database_path()}")

    async with raocow.open_catalog(config) as catalog:
        # Create containers
        print("\n2. Creating channel and series...")
        channel = Channel(youtube_id="raocow", name="raocow")
        series = Series(name="Super Marisa World")
        await catalog.channels.save(channel)
        await catalog.series.save(series)
        print(f"   Channel id: {channel.id}")
        print(f"   Series id: {series.id}")

        # Create videos; repeated titles get suffixed ids
        print("\n3. Creating videos...")
        videos = [
            Video(
                title=f"Super Marisa World - Part {i}",
                youtube_id=f"smw{i:03d}",
                published=datetime.now(timezone.utc),
            )
            for i in range(1, 4)
        ]
        videos.append(
            Video(
                title="Super Marisa World - Part 1",
                youtube_id="smw001b",
                published=datetime.now(timezone.utc),
            )
        )
        for video in videos:
            result = await catalog.videos.save(video)
            print(f"   {video.title!r} -> {video.id} ({'ok' if result else result.error})")

        # Attach
        print("\n4. Attaching videos...")
        for video in videos:
            await catalog.series_videos.add_video(series.id, video.id)
            await catalog.channel_videos.add_video(channel.id, video.id)
        # Attaching twice is a no-op
        await catalog.series_videos.add_video(series.id, videos[0].id)

        listed = await catalog.series_videos.list_videos(series.id)
        print(f"   {series.name} holds {len(listed.value)} videos:")
        for video in listed.value:
            print(f"     - {video.id}")

        containers = await catalog.channel_videos.list_containers(videos[0].id)
        print(f"   {videos[0].id} is on channel(s): {[c.id for c in containers.value]}")

        # Update
        print("\n5. Updating series name...")
        result = await catalog.series.update(series.id, Series(name="Super Marisa World (complete)"))
        print(f"   Name now {result.value.name!r}, id still {result.value.id}")

        # Delete
        print("\n6. Deleting the channel...")
        await catalog.channels.delete(channel)
        missing = await catalog.channels.get_by_id("raocow")
        print(f"   Lookup after delete: {missing.error}")

        # Seed
        print("\n7. Seeding sample data (10 videos)...")
        seeded = await seed_sample_data(catalog, video_count=10)
        print(f"   Channel {seeded.channel_id}, series {seeded.series_id}")
        print(f"   Created {len(seeded.video_ids)} videos, {seeded.failed_count} failures")

    print("\n" + "=" * 70)
    print("Example complete!")
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(main())
