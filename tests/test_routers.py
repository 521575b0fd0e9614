import pytest

from conftest import bearer
from tik_agent.models.video import Video
from tik_agent.models.video_queue import QueueItem
from tik_agent.repositories.queue_repository import QueueRepository
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.routers import system as system_router
from tik_agent.services import product_extractor, video_pipeline
from tik_agent.services.video_renderer import PlaceholderVideoGenerator, RenderError

PRODUCT_URL = "https://shop.tiktok.com/view/product/123"


@pytest.fixture
def offline(monkeypatch):
    def unreachable(url, client=None):
        raise product_extractor.ExtractionError("unreachable")

    monkeypatch.setattr(product_extractor, "fetch_html", unreachable)


@pytest.fixture
def video(db, user):
    return VideoRepository(db).create(
        user.id,
        PRODUCT_URL,
        product_name="Glow Serum",
        product_price="$24.99",
        product_description="Vitamin C",
        product_image="https://cdn.example.com/serum.jpg",
    )


# ---------- product ----------


def test_analyze_requires_login(client):
    res = client.post("/api/trpc/product.analyze", json={"url": PRODUCT_URL})
    assert res.status_code == 401


def test_analyze_rejects_bad_url(client, auth_headers, offline):
    res = client.post("/api/trpc/product.analyze", json={"url": "not a url"}, headers=auth_headers)
    assert res.status_code == 422


def test_analyze_stores_url_as_sent(client, db, auth_headers, offline):
    res = client.post("/api/trpc/product.analyze", json={"url": "https://shop.example.com"}, headers=auth_headers)
    assert res.status_code == 200
    assert db.get(Video, res.json()["videoId"]).product_url == "https://shop.example.com"


def test_analyze_rejects_non_http_scheme(client, auth_headers, offline):
    res = client.post("/api/trpc/product.analyze", json={"url": "ftp://shop.example.com/item"}, headers=auth_headers)
    assert res.status_code == 422


def test_analyze_unreachable_url_still_creates_video(client, db, auth_headers, offline):
    res = client.post("/api/trpc/product.analyze", json={"url": PRODUCT_URL}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["product"]["name"] == "Premium TikTok Shop Product"
    assert body["product"]["source"] == "fallback"

    video = db.get(Video, body["videoId"])
    assert video.status == "pending"
    assert video.product_name == "Premium TikTok Shop Product"
    assert video.product_price == "$29.99"
    assert video.product_description


# ---------- video ----------


def test_generate_script_is_not_persisted(monkeypatch, client, db, video, auth_headers):
    monkeypatch.setattr(video_pipeline, "generate_script", lambda name, price, description: f"Hook {name}\nBuy")
    res = client.post("/api/trpc/video.generateScript", json={"videoId": video.id}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"script": "Hook Glow Serum\nBuy"}
    db.refresh(video)
    assert video.status == "pending"


def test_generate_renders_and_completes(monkeypatch, client, db, video, auth_headers):
    monkeypatch.setattr(video_pipeline, "get_renderer", lambda: PlaceholderVideoGenerator("https://cdn.example.com/v.mp4"))
    res = client.post(
        "/api/trpc/video.generate", json={"videoId": video.id, "script": "Hook\nBuy"}, headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.json() == {"videoUrl": "https://cdn.example.com/v.mp4", "thumbnailUrl": "https://cdn.example.com/serum.jpg"}
    db.refresh(video)
    assert video.status == "completed"


def test_generate_refuses_overwrite_without_regenerate(monkeypatch, client, db, video, auth_headers):
    monkeypatch.setattr(video_pipeline, "get_renderer", lambda: PlaceholderVideoGenerator("https://cdn.example.com/v.mp4"))
    VideoRepository(db).update(video, status="completed", video_url="https://cdn.example.com/old.mp4")

    res = client.post("/api/trpc/video.generate", json={"videoId": video.id, "script": "s"}, headers=auth_headers)
    assert res.status_code == 409

    res = client.post(
        "/api/trpc/video.generate",
        json={"videoId": video.id, "script": "s", "regenerate": True},
        headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.json()["videoUrl"] == "https://cdn.example.com/v.mp4"


def test_generate_failure_is_recorded(monkeypatch, client, db, video, auth_headers):
    class Broken(PlaceholderVideoGenerator):
        def render(self, request):
            raise RenderError("Creatomate render failed: 500")

    monkeypatch.setattr(video_pipeline, "get_renderer", lambda: Broken(""))
    res = client.post("/api/trpc/video.generate", json={"videoId": video.id, "script": "s"}, headers=auth_headers)
    assert res.status_code == 502
    assert "Creatomate render failed" in res.json()["detail"]
    db.refresh(video)
    assert video.status == "failed"
    assert video.error_message == "Creatomate render failed: 500"


def test_generate_requires_script(client, video, auth_headers):
    res = client.post("/api/trpc/video.generate", json={"videoId": video.id, "script": ""}, headers=auth_headers)
    assert res.status_code == 422


def test_generate_caption(monkeypatch, client, db, video, auth_headers):
    monkeypatch.setattr(video_pipeline, "generate_caption", lambda name, description: "Glow ✨ #skincare #fyp")
    res = client.post("/api/trpc/video.generateCaption", json={"videoId": video.id}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"caption": "Glow ✨ #skincare #fyp", "hashtags": ["#skincare", "#fyp"]}
    db.refresh(video)
    assert video.caption == "Glow ✨ #skincare #fyp"


def test_video_steps_are_owner_scoped(client, video, other_user):
    res = client.post(
        "/api/trpc/video.generateScript", json={"videoId": video.id}, headers=bearer(other_user.open_id, "Other User"),
    )
    assert res.status_code == 404


def test_generate_from_url(monkeypatch, client, auth_headers):
    monkeypatch.setattr(
        video_pipeline,
        "scrape_product",
        lambda url: product_extractor.ExtractedProduct(
            name="Mug", price="$9", description="Big mug", images=["https://cdn.example.com/mug.jpg"],
            source=product_extractor.ExtractionSource.HTML,
        ),
    )
    monkeypatch.setattr(video_pipeline, "generate_script", lambda name, price, description: "Hook\nBuy")
    monkeypatch.setattr(video_pipeline, "get_renderer", lambda: PlaceholderVideoGenerator("https://cdn.example.com/m.mp4"))
    res = client.post("/api/trpc/video.generateFromUrl", json={"url": PRODUCT_URL}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["videoUrl"] == "https://cdn.example.com/m.mp4"
    assert body["script"] == "Hook\nBuy"
    assert body["product"]["images"] == ["https://cdn.example.com/mug.jpg"]


# ---------- videos ----------


def test_videos_list_get_update_delete(client, db, video, auth_headers):
    res = client.get("/api/trpc/videos.list", headers=auth_headers)
    assert [v["id"] for v in res.json()] == [video.id]
    assert res.json()[0]["productName"] == "Glow Serum"

    res = client.get("/api/trpc/videos.get", params={"id": video.id}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["productUrl"] == PRODUCT_URL

    res = client.post(
        "/api/trpc/videos.updateDetails",
        json={"id": video.id, "productName": "Glow Serum XL", "productPrice": "$29", "productDescription": "Bigger"},
        headers=auth_headers,
    )
    assert res.json() == {"success": True}
    db.refresh(video)
    assert video.product_name == "Glow Serum XL"

    res = client.post("/api/trpc/videos.delete", json={"id": video.id}, headers=auth_headers)
    assert res.json() == {"success": True}
    assert client.get("/api/trpc/videos.list", headers=auth_headers).json() == []


def test_videos_get_other_user(client, video, other_user):
    res = client.get("/api/trpc/videos.get", params={"id": video.id}, headers=bearer(other_user.open_id, "Other User"))
    assert res.status_code == 404
    assert res.json()["detail"] == "Video not found"


# ---------- settings ----------


def test_settings_get_and_update(client, auth_headers):
    assert client.get("/api/trpc/settings.get", headers=auth_headers).json() is None

    res = client.post(
        "/api/trpc/settings.update", json={"hfToken": "hf_abc", "videoQuality": "high"}, headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.json()["videoQuality"] == "high"

    client.post("/api/trpc/settings.update", json={"videoLength": 12}, headers=auth_headers)
    body = client.get("/api/trpc/settings.get", headers=auth_headers).json()
    assert body["hfToken"] == "hf_abc"
    assert body["videoLength"] == 12
    assert body["defaultPrivacy"] == "PUBLIC_TO_EVERYONE"


def test_settings_update_validates_enums(client, auth_headers):
    res = client.post("/api/trpc/settings.update", json={"videoQuality": "ultra"}, headers=auth_headers)
    assert res.status_code == 422


# ---------- queue ----------


def test_queue_add_list_delete(client, video, auth_headers):
    res = client.post(
        "/api/trpc/queue.add", json={"videoId": video.id, "productUrl": PRODUCT_URL, "priority": 2}, headers=auth_headers,
    )
    assert res.status_code == 200
    item_id = res.json()["id"]

    items = client.get("/api/trpc/queue.list", headers=auth_headers).json()
    assert [(i["id"], i["status"], i["priority"]) for i in items] == [(item_id, "queued", 2)]

    res = client.post("/api/trpc/queue.delete", json={"id": item_id}, headers=auth_headers)
    assert res.json() == {"success": True}
    assert client.get("/api/trpc/queue.list", headers=auth_headers).json() == []


def test_queue_add_unknown_video(client, auth_headers):
    res = client.post("/api/trpc/queue.add", json={"videoId": 999, "productUrl": PRODUCT_URL}, headers=auth_headers)
    assert res.status_code == 404


def test_queue_add_completed_video_needs_regenerate(client, db, video, auth_headers):
    VideoRepository(db).update(video, status="completed", video_url="/media/videos/old.mp4")
    body = {"videoId": video.id, "productUrl": PRODUCT_URL}

    res = client.post("/api/trpc/queue.add", json=body, headers=auth_headers)
    assert res.status_code == 409
    assert db.query(QueueItem).count() == 0

    res = client.post("/api/trpc/queue.add", json={**body, "regenerate": True}, headers=auth_headers)
    assert res.status_code == 200
    assert db.get(QueueItem, res.json()["id"]).regenerate is True


def test_queue_add_rejects_posted_video(client, db, video, auth_headers):
    VideoRepository(db).update(video, status="posted", tiktok_post_id="tt-1")
    res = client.post(
        "/api/trpc/queue.add",
        json={"videoId": video.id, "productUrl": PRODUCT_URL, "regenerate": True},
        headers=auth_headers,
    )
    assert res.status_code == 409
    assert db.query(QueueItem).count() == 0


def test_queue_delete_only_queued(client, db, user, video, auth_headers):
    queue = QueueRepository(db)
    item = queue.create(user.id, video.id, PRODUCT_URL)
    queue.claim_next()

    res = client.post("/api/trpc/queue.delete", json={"id": item.id}, headers=auth_headers)
    assert res.status_code == 409
    assert db.get(QueueItem, item.id) is not None


def test_queue_stats(client, db, user, video, auth_headers):
    queue = QueueRepository(db)
    first = queue.create(user.id, video.id, PRODUCT_URL)
    queue.create(user.id, video.id, PRODUCT_URL)
    queue.mark_failed(first.id, "boom")

    res = client.get("/api/trpc/queue.stats", headers=auth_headers)
    assert res.json() == {"total": 2, "queued": 1, "processing": 0, "completed": 0, "failed": 1}


# ---------- analytics ----------


def test_analytics_without_posted_videos(client, video, auth_headers):
    res = client.get("/api/trpc/analytics.metrics", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {
        "topPerformers": [],
        "averageEngagement": 0,
        "totalViews": 0,
        "totalLikes": 0,
        "totalViewsDisplay": "0",
        "totalLikesDisplay": "0",
    }


def test_analytics_lists_posted_videos(client, db, video, auth_headers):
    VideoRepository(db).update(video, status="posted", tiktok_post_id="tt-1")
    res = client.get("/api/trpc/analytics.metrics", headers=auth_headers)
    performers = res.json()["topPerformers"]
    assert [(p["videoId"], p["tiktokPostId"], p["views"]) for p in performers] == [(video.id, "tt-1", 0)]


# ---------- system ----------


def test_health_endpoints(client):
    res = client.get("/api/health")
    assert res.json()["ok"] is True
    assert res.json()["timestamp"] > 0

    assert client.get("/api/trpc/system.health", params={"timestamp": 1}).json() == {"ok": True}
    assert client.get("/api/trpc/system.health", params={"timestamp": -1}).status_code == 422


def test_notify_owner_is_admin_only(monkeypatch, client, auth_headers, admin_headers):
    sent = []
    monkeypatch.setattr(system_router, "notify_owner", lambda title, content: sent.append((title, content)) or True)

    res = client.post("/api/trpc/system.notifyOwner", json={"title": "Hi", "content": "There"}, headers=auth_headers)
    assert res.status_code == 403
    assert res.json()["detail"] == "You do not have required permission (10002)"

    res = client.post("/api/trpc/system.notifyOwner", json={"title": "Hi", "content": "There"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert sent == [("Hi", "There")]
