import asyncio

import pytest

from tik_agent.models.video_queue import QueueItem, QueueStatus
from tik_agent.repositories.queue_repository import QueueRepository
from tik_agent.repositories.settings_repository import SettingsRepository
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.services import queue_processor
from tik_agent.services.queue_processor import generate_queue_video, process_queue_batch, queue_driver
from tik_agent.services.video_renderer import HuggingFaceVideoGenerator, RenderError, RenderRequest

PRODUCT_URL = "https://shop.tiktok.com/view/product/123"


@pytest.fixture
def fake_generation(monkeypatch):
    monkeypatch.setattr(queue_processor, "generate_script", lambda name, price, description: f"Hook {name}\nBuy")
    monkeypatch.setattr(queue_processor, "generate_thumbnail", lambda name: "/media/thumbnails/t.png")
    monkeypatch.setattr(queue_processor, "generate_caption", lambda name, description: "So good #fyp #deal")


@pytest.fixture
def video(db, user):
    return VideoRepository(db).create(user.id, PRODUCT_URL, product_name="Glow Serum")


def test_claim_follows_priority_then_id(db, user, video):
    queue = QueueRepository(db)
    low = queue.create(user.id, video.id, PRODUCT_URL, priority=0)
    high = queue.create(user.id, video.id, PRODUCT_URL, priority=5)
    low_again = queue.create(user.id, video.id, PRODUCT_URL, priority=0)

    assert queue.claim_next().id == high.id
    assert queue.claim_next().id == low.id
    assert queue.claim_next().id == low_again.id
    assert queue.claim_next() is None


def test_claim_skips_rows_already_taken(db, user, video):
    queue = QueueRepository(db)
    first = queue.create(user.id, video.id, PRODUCT_URL, priority=1)
    second = queue.create(user.id, video.id, PRODUCT_URL)

    db.query(QueueItem).filter(QueueItem.id == first.id).update({QueueItem.status: QueueStatus.PROCESSING.value})
    db.commit()

    claimed = queue.claim_next()
    assert claimed.id == second.id
    assert claimed.status == "processing"


def test_batch_completes_item_and_video(session_factory, db, user, video, fake_generation):
    item = QueueRepository(db).create(user.id, video.id, PRODUCT_URL)

    assert process_queue_batch(session_factory) == item.id

    db.expire_all()
    assert db.get(QueueItem, item.id).status == "completed"
    refreshed = VideoRepository(db).get(video.id)
    assert refreshed.status == "completed"
    assert refreshed.video_url == "/media/placeholder.mp4"
    assert refreshed.thumbnail_url == "/media/thumbnails/t.png"
    assert refreshed.caption == "So good #fyp #deal"
    assert refreshed.hashtags == "#fyp #deal"


def test_batch_is_idle_without_items(session_factory):
    assert process_queue_batch(session_factory) is None


def test_batch_records_failure(monkeypatch, session_factory, db, user, video, fake_generation):
    def broken_caption(name, description):
        raise RuntimeError("LLM quota exceeded")

    monkeypatch.setattr(queue_processor, "generate_caption", broken_caption)
    item = QueueRepository(db).create(user.id, video.id, PRODUCT_URL)

    assert process_queue_batch(session_factory) == item.id

    db.expire_all()
    failed = db.get(QueueItem, item.id)
    assert failed.status == "failed"
    assert failed.error_message == "LLM quota exceeded"
    refreshed = VideoRepository(db).get(video.id)
    assert refreshed.status == "failed"
    assert refreshed.error_message == "LLM quota exceeded"


def test_failure_does_not_block_next_item(monkeypatch, session_factory, db, user, video, fake_generation):
    queue = QueueRepository(db)
    missing = queue.create(user.id, 999, PRODUCT_URL, priority=1)
    ok = queue.create(user.id, video.id, PRODUCT_URL)

    process_queue_batch(session_factory)
    process_queue_batch(session_factory)

    db.expire_all()
    assert db.get(QueueItem, missing.id).status == "failed"
    assert db.get(QueueItem, ok.id).status == "completed"


def test_batch_regenerates_completed_video_when_flagged(session_factory, db, user, video, fake_generation):
    VideoRepository(db).update(video, status="completed", video_url="/media/videos/old.mp4")
    item = QueueRepository(db).create(user.id, video.id, PRODUCT_URL, regenerate=True)

    process_queue_batch(session_factory)

    db.expire_all()
    assert db.get(QueueItem, item.id).status == "completed"
    assert VideoRepository(db).get(video.id).video_url == "/media/placeholder.mp4"


def test_batch_keeps_completed_video_without_flag(session_factory, db, user, video, fake_generation):
    VideoRepository(db).update(video, status="completed", video_url="/media/videos/old.mp4")
    item = QueueRepository(db).create(user.id, video.id, PRODUCT_URL)

    process_queue_batch(session_factory)

    db.expire_all()
    assert db.get(QueueItem, item.id).status == "failed"
    kept = VideoRepository(db).get(video.id)
    assert kept.status == "completed"
    assert kept.video_url == "/media/videos/old.mp4"


def test_batch_never_touches_posted_video(session_factory, db, user, video, fake_generation):
    VideoRepository(db).update(video, status="posted", video_url="/media/videos/live.mp4", tiktok_post_id="tt-1")
    item = QueueRepository(db).create(user.id, video.id, PRODUCT_URL, regenerate=True)

    process_queue_batch(session_factory)

    db.expire_all()
    failed = db.get(QueueItem, item.id)
    assert failed.status == "failed"
    assert "posted" in failed.error_message
    kept = VideoRepository(db).get(video.id)
    assert kept.status == "posted"
    assert kept.video_url == "/media/videos/live.mp4"
    assert kept.error_message is None


def test_queue_video_uses_user_token(monkeypatch, db, user):
    settings_row = SettingsRepository(db).upsert(user.id, hf_token="hf_user", video_quality="high")
    seen = {}

    def fake_render(self, request):
        seen["token"] = self.token
        seen["quality"] = request.quality
        return "/media/videos/ugc_1.mp4"

    monkeypatch.setattr(HuggingFaceVideoGenerator, "render", fake_render)
    url = generate_queue_video(RenderRequest(script="s", quality="high"), settings_row)
    assert url == "/media/videos/ugc_1.mp4"
    assert seen == {"token": "hf_user", "quality": "high"}


def test_queue_video_falls_back_to_placeholder(monkeypatch, db, user):
    settings_row = SettingsRepository(db).upsert(user.id, hf_token="hf_user")

    def failing_render(self, request):
        raise RenderError("Rate limited by Hugging Face. Please try again in a few moments.")

    monkeypatch.setattr(HuggingFaceVideoGenerator, "render", failing_render)
    assert generate_queue_video(RenderRequest(script="s"), settings_row) == "/media/placeholder.mp4"
    assert generate_queue_video(RenderRequest(script="s"), None) == "/media/placeholder.mp4"


def test_driver_survives_errors_until_cancelled(monkeypatch):
    calls = []

    def flaky_batch(session_factory):
        calls.append(session_factory)
        if len(calls) == 1:
            raise RuntimeError("database unavailable")
        return None

    monkeypatch.setattr(queue_processor, "process_queue_batch", flaky_batch)

    async def run():
        task = asyncio.create_task(queue_driver(object(), interval=0.01, workers=2))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert len(calls) >= 4
