"""
API tests for site content: news, gallery, sponsors, slider, videos and
site settings.
"""

NEWS = {
    "title": "Autumn Slam results",
    "excerpt": "A bumper day at Larford",
    "content": "Full report...",
    "category": "match-reports",
    "author": "Sam Reed",
    "date": "2030-10-13",
    "readTime": "3 min",
    "image": "/attached-assets/uploads/news/a.jpg",
}

SPONSOR = {
    "name": "Big Nets",
    "tier": "platinum",
    "logo": "/attached-assets/uploads/sponsors/big.png",
    "shortDescription": "Landing nets",
    "description": "Makers of landing nets since 1980.",
}


class TestNews:
    def test_crud(self, client, admin):
        resp = client.post("/api/admin/news", json={**NEWS, "featured": True}, headers=admin["headers"])
        assert resp.status_code == 201
        article = resp.json()
        assert article["readTime"] == "3 min"

        resp = client.get(f"/api/news/{article['id']}")
        assert resp.json()["title"] == "Autumn Slam results"
        assert resp.headers["cache-control"] == "public, max-age=300"
        assert [n["id"] for n in client.get("/api/news/featured").json()] == [article["id"]]

        resp = client.put(f"/api/admin/news/{article['id']}", json={"featured": False}, headers=admin["headers"])
        assert resp.json()["featured"] is False
        assert resp.json()["title"] == "Autumn Slam results"
        assert client.get("/api/news/featured").json() == []

        resp = client.delete(f"/api/admin/news/{article['id']}", headers=admin["headers"])
        assert resp.json()["message"] == "News article deleted successfully"
        resp = client.get(f"/api/news/{article['id']}")
        assert resp.status_code == 404
        assert resp.json()["message"] == "News article not found"

    def test_missing_fields(self, client, admin):
        resp = client.post("/api/admin/news", json={"title": "Only a title"}, headers=admin["headers"])
        assert resp.status_code == 400

    def test_writes_require_staff(self, client, make_angler):
        angler = make_angler()
        assert client.post("/api/admin/news", json=NEWS).status_code == 401
        assert client.post("/api/admin/news", json=NEWS, headers=angler["headers"]).status_code == 401


class TestGallery:
    def test_category_filter(self, client, admin):
        base = {"urls": ["/a.jpg"], "description": "", "date": "2030-10-12"}
        for title, category in (("Carp", "catches"), ("Lake", "venues")):
            body = {**base, "title": title, "category": category}
            client.post("/api/admin/gallery", json=body, headers=admin["headers"])

        assert len(client.get("/api/gallery").json()) == 2
        assert [g["title"] for g in client.get("/api/gallery", params={"category": "venues"}).json()] == ["Lake"]

    def test_needs_at_least_one_url(self, client, admin):
        body = {"urls": [], "title": "Empty", "description": "", "category": "catches", "date": "2030-10-12"}
        assert client.post("/api/admin/gallery", json=body, headers=admin["headers"]).status_code == 400

    def test_update_unknown(self, client, admin):
        resp = client.put("/api/admin/gallery/missing", json={"title": "x"}, headers=admin["headers"])
        assert resp.status_code == 404


class TestSponsors:
    def test_tier_filter_and_order(self, client, admin):
        gold = {**SPONSOR, "name": "Zed Baits", "tier": "gold"}
        client.post("/api/admin/sponsors", json=gold, headers=admin["headers"])
        client.post("/api/admin/sponsors", json=SPONSOR, headers=admin["headers"])

        assert [s["name"] for s in client.get("/api/sponsors").json()] == ["Big Nets", "Zed Baits"]
        assert [s["name"] for s in client.get("/api/sponsors", params={"tier": "gold"}).json()] == ["Zed Baits"]

    def test_invalid_tier(self, client, admin):
        assert client.get("/api/sponsors", params={"tier": "bronze"}).status_code == 400
        resp = client.post("/api/admin/sponsors", json={**SPONSOR, "tier": "bronze"}, headers=admin["headers"])
        assert resp.status_code == 400

    def test_social_links_nested(self, client, admin):
        body = {**SPONSOR, "social": {"facebook": "https://facebook.com/bignets"}}
        sponsor = client.post("/api/admin/sponsors", json=body, headers=admin["headers"]).json()
        assert sponsor["social"]["facebook"] == "https://facebook.com/bignets"


class TestSliderAndVideos:
    def test_public_slider_shows_active_only(self, client, admin):
        client.post("/api/admin/slider-images", json={"imageUrl": "/b.jpg", "order": 2}, headers=admin["headers"])
        hidden = client.post(
            "/api/admin/slider-images", json={"imageUrl": "/a.jpg", "order": 1}, headers=admin["headers"]
        ).json()
        client.put(f"/api/admin/slider-images/{hidden['id']}", json={"isActive": False}, headers=admin["headers"])

        assert [s["imageUrl"] for s in client.get("/api/slider-images").json()] == ["/b.jpg"]
        assert len(client.get("/api/admin/slider-images", headers=admin["headers"]).json()) == 2

    def test_youtube_videos(self, client, admin):
        video = client.post(
            "/api/admin/youtube-videos", json={"title": "Match day", "videoId": "dQw4w9WgXcQ"}, headers=admin["headers"]
        ).json()
        assert video["active"] is True
        assert [v["videoId"] for v in client.get("/api/youtube-videos").json()] == ["dQw4w9WgXcQ"]

        client.put(f"/api/admin/youtube-videos/{video['id']}", json={"active": False}, headers=admin["headers"])
        assert client.get("/api/youtube-videos").json() == []

        resp = client.delete(f"/api/admin/youtube-videos/{video['id']}", headers=admin["headers"])
        assert resp.json()["message"] == "Video deleted successfully"


class TestSiteSettings:
    def test_defaults_then_update(self, client, admin):
        assert client.get("/api/site-settings").json() == {"logoUrl": None}
        resp = client.put("/api/admin/site-settings", json={"logoUrl": "/logo.png"}, headers=admin["headers"])
        assert resp.json()["logoUrl"] == "/logo.png"
        assert client.get("/api/site-settings").json()["logoUrl"] == "/logo.png"
