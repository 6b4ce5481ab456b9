"""
Site content managed from the admin dashboard: news, gallery, sponsors,
homepage slider, YouTube videos and the site-wide settings row.
"""

from __future__ import annotations

from typing import Any, Mapping

from pegslam.repository.base import GALLERY, NEWS, SITE_SETTINGS, SLIDER, SPONSORS, YOUTUBE, utc_now

_SITE_SETTINGS_ID = "default"


class ContentMixin:
    # News

    def create_news(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self._create_record(NEWS, {"featured": False, "competition": None, **data})

    def get_news(self, news_id: str) -> dict[str, Any] | None:
        return self._get_record(NEWS, news_id)

    def list_news(self, *, featured_only: bool = False) -> list[dict[str, Any]]:
        where = "featured = 1" if featured_only else ""
        return self._list_records(NEWS, where, order_by="date DESC, created_at DESC")

    def update_news(self, news_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        return self._update_record(NEWS, news_id, updates)

    def delete_news(self, news_id: str) -> bool:
        return self._delete_record(NEWS, news_id)

    # Gallery

    def create_gallery_image(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {"featured": False, "competition": None, "angler": None, "weight": None, "urls": [], **data}
        return self._create_record(GALLERY, record)

    def get_gallery_image(self, image_id: str) -> dict[str, Any] | None:
        return self._get_record(GALLERY, image_id)

    def list_gallery_images(self, *, featured_only: bool = False, category: str | None = None) -> list[dict[str, Any]]:
        images = self._list_records(
            GALLERY,
            "featured = 1" if featured_only else "",
            order_by="date DESC, created_at DESC",
        )
        if category:
            images = [image for image in images if image.get("category") == category]
        return images

    def update_gallery_image(self, image_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        return self._update_record(GALLERY, image_id, updates)

    def delete_gallery_image(self, image_id: str) -> bool:
        return self._delete_record(GALLERY, image_id)

    # Sponsors

    def create_sponsor(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {"social": None, "featuredAboveFooter": True, **data}
        return self._create_record(SPONSORS, record)

    def get_sponsor(self, sponsor_id: str) -> dict[str, Any] | None:
        return self._get_record(SPONSORS, sponsor_id)

    def list_sponsors(self, tier: str | None = None) -> list[dict[str, Any]]:
        if tier:
            return self._list_records(SPONSORS, "tier = ?", (tier,), "LOWER(name) ASC")
        return self._list_records(
            SPONSORS,
            order_by=(
                "CASE tier WHEN 'platinum' THEN 0 WHEN 'gold' THEN 1 WHEN 'silver' THEN 2 ELSE 3 END,"
                " LOWER(name) ASC"
            ),
        )

    def update_sponsor(self, sponsor_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        return self._update_record(SPONSORS, sponsor_id, updates)

    def delete_sponsor(self, sponsor_id: str) -> bool:
        return self._delete_record(SPONSORS, sponsor_id)

    # Homepage slider

    def create_slider_image(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {"order": 0, "isActive": True, **data}
        record["updatedAt"] = utc_now()
        return self._create_record(SLIDER, record)

    def list_slider_images(self, *, active_only: bool = False) -> list[dict[str, Any]]:
        return self._list_records(SLIDER, "is_active = 1" if active_only else "", order_by="sort_order ASC")

    def update_slider_image(self, image_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        return self._update_record(SLIDER, image_id, {**updates, "updatedAt": utc_now()})

    def delete_slider_image(self, image_id: str) -> bool:
        return self._delete_record(SLIDER, image_id)

    # YouTube videos

    def create_youtube_video(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {"description": None, "displayOrder": 0, "active": True, **data}
        return self._create_record(YOUTUBE, record)

    def list_youtube_videos(self, *, active_only: bool = False) -> list[dict[str, Any]]:
        return self._list_records(YOUTUBE, "active = 1" if active_only else "", order_by="display_order ASC")

    def update_youtube_video(self, video_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        return self._update_record(YOUTUBE, video_id, updates)

    def delete_youtube_video(self, video_id: str) -> bool:
        return self._delete_record(YOUTUBE, video_id)

    # Site settings

    def get_site_settings(self) -> dict[str, Any] | None:
        return self._get_record(SITE_SETTINGS, _SITE_SETTINGS_ID)

    def update_site_settings(self, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``updates`` into the single settings row, creating it on first write."""
        with self._conn() as conn:
            current = self._get(conn, SITE_SETTINGS, _SITE_SETTINGS_ID)
            if current is None:
                record = {"id": _SITE_SETTINGS_ID, "logoUrl": None, **updates, "updatedAt": utc_now()}
                return self._insert(conn, SITE_SETTINGS, record)
            current.update({k: v for k, v in updates.items() if k != "id"})
            current["updatedAt"] = utc_now()
            return self._save(conn, SITE_SETTINGS, current)
