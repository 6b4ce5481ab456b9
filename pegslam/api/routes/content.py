"""
Site content: news, gallery, sponsors, homepage slider, YouTube videos and
site settings. Reads are public and cacheable; writes need a staff session.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from pegslam.api.dependencies import get_repo, require_staff, set_no_store
from pegslam.api.models import (
    GalleryImageCreate,
    GalleryImageUpdate,
    NewsCreate,
    NewsUpdate,
    SiteSettingsUpdate,
    SliderImageCreate,
    SliderImageUpdate,
    SponsorCreate,
    SponsorTier,
    SponsorUpdate,
    YoutubeVideoCreate,
    YoutubeVideoUpdate,
)
from pegslam.exceptions import NotFoundError
from pegslam.logging_config import log_event

router = APIRouter(prefix="/api", tags=["content"])

_PUBLIC_CACHE = "public, max-age=300"


def _found(record: dict | None, message: str, resource_id: str) -> dict:
    if record is None:
        raise NotFoundError(message, resource_id=resource_id)
    return record


def _deleted(ok: bool, message: str, resource_id: str) -> None:
    if not ok:
        raise NotFoundError(message, resource_id=resource_id)


# =============================================================================
# News
# =============================================================================


@router.get("/news")
def list_news(request: Request, response: Response) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_news()


@router.get("/news/featured")
def featured_news(request: Request, response: Response) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_news(featured_only=True)


@router.get("/news/{news_id}")
def get_news(news_id: str, request: Request, response: Response) -> dict:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return _found(get_repo(request).get_news(news_id), "News article not found", news_id)


@router.post("/admin/news", status_code=201)
def create_news(payload: NewsCreate, request: Request) -> dict:
    staff = require_staff(request)
    article = get_repo(request).create_news(payload.record())
    log_event("news_created", news_id=article["id"], created_by=staff["id"])
    return article


@router.put("/admin/news/{news_id}")
def update_news(news_id: str, payload: NewsUpdate, request: Request) -> dict:
    require_staff(request)
    return _found(get_repo(request).update_news(news_id, payload.record()), "News article not found", news_id)


@router.delete("/admin/news/{news_id}")
def delete_news(news_id: str, request: Request) -> dict:
    require_staff(request)
    _deleted(get_repo(request).delete_news(news_id), "News article not found", news_id)
    return {"message": "News article deleted successfully"}


# =============================================================================
# Gallery
# =============================================================================


@router.get("/gallery")
def list_gallery(
    request: Request,
    response: Response,
    category: str | None = Query(default=None, max_length=50),
) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_gallery_images(category=category)


@router.get("/gallery/featured")
def featured_gallery(request: Request, response: Response) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_gallery_images(featured_only=True)


@router.post("/admin/gallery", status_code=201)
def create_gallery_image(payload: GalleryImageCreate, request: Request) -> dict:
    staff = require_staff(request)
    image = get_repo(request).create_gallery_image(payload.record())
    log_event("gallery_image_created", image_id=image["id"], created_by=staff["id"])
    return image


@router.put("/admin/gallery/{image_id}")
def update_gallery_image(image_id: str, payload: GalleryImageUpdate, request: Request) -> dict:
    require_staff(request)
    image = get_repo(request).update_gallery_image(image_id, payload.record())
    return _found(image, "Gallery image not found", image_id)


@router.delete("/admin/gallery/{image_id}")
def delete_gallery_image(image_id: str, request: Request) -> dict:
    require_staff(request)
    _deleted(get_repo(request).delete_gallery_image(image_id), "Gallery image not found", image_id)
    return {"message": "Gallery image deleted successfully"}


# =============================================================================
# Sponsors
# =============================================================================


@router.get("/sponsors")
def list_sponsors(request: Request, response: Response, tier: SponsorTier | None = None) -> list[dict]:
    """All sponsors, platinum first, or just one tier."""
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_sponsors(tier)


@router.post("/admin/sponsors", status_code=201)
def create_sponsor(payload: SponsorCreate, request: Request) -> dict:
    staff = require_staff(request)
    sponsor = get_repo(request).create_sponsor(payload.record())
    log_event("sponsor_created", sponsor_id=sponsor["id"], tier=sponsor["tier"], created_by=staff["id"])
    return sponsor


@router.put("/admin/sponsors/{sponsor_id}")
def update_sponsor(sponsor_id: str, payload: SponsorUpdate, request: Request) -> dict:
    require_staff(request)
    sponsor = get_repo(request).update_sponsor(sponsor_id, payload.record())
    return _found(sponsor, "Sponsor not found", sponsor_id)


@router.delete("/admin/sponsors/{sponsor_id}")
def delete_sponsor(sponsor_id: str, request: Request) -> dict:
    require_staff(request)
    _deleted(get_repo(request).delete_sponsor(sponsor_id), "Sponsor not found", sponsor_id)
    return {"message": "Sponsor deleted successfully"}


# =============================================================================
# Homepage slider
# =============================================================================


@router.get("/slider-images")
def active_slider_images(request: Request, response: Response) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_slider_images(active_only=True)


@router.get("/admin/slider-images")
def all_slider_images(request: Request, response: Response) -> list[dict]:
    require_staff(request)
    set_no_store(response)
    return get_repo(request).list_slider_images()


@router.post("/admin/slider-images", status_code=201)
def create_slider_image(payload: SliderImageCreate, request: Request) -> dict:
    require_staff(request)
    return get_repo(request).create_slider_image(payload.record())


@router.put("/admin/slider-images/{image_id}")
def update_slider_image(image_id: str, payload: SliderImageUpdate, request: Request) -> dict:
    require_staff(request)
    image = get_repo(request).update_slider_image(image_id, payload.record())
    return _found(image, "Slider image not found", image_id)


@router.delete("/admin/slider-images/{image_id}")
def delete_slider_image(image_id: str, request: Request) -> dict:
    require_staff(request)
    _deleted(get_repo(request).delete_slider_image(image_id), "Slider image not found", image_id)
    return {"message": "Slider image deleted successfully"}


# =============================================================================
# Site settings
# =============================================================================


@router.get("/site-settings")
def get_site_settings(request: Request, response: Response) -> dict:
    response.headers["Cache-Control"] = "public, max-age=60"
    return get_repo(request).get_site_settings() or {"logoUrl": None}


@router.put("/admin/site-settings")
def update_site_settings(payload: SiteSettingsUpdate, request: Request) -> dict:
    staff = require_staff(request)
    settings = get_repo(request).update_site_settings(payload.record())
    log_event("site_settings_updated", updated_by=staff["id"])
    return settings


# =============================================================================
# YouTube videos
# =============================================================================


@router.get("/youtube-videos")
def active_youtube_videos(request: Request, response: Response) -> list[dict]:
    response.headers["Cache-Control"] = _PUBLIC_CACHE
    return get_repo(request).list_youtube_videos(active_only=True)


@router.get("/admin/youtube-videos")
def all_youtube_videos(request: Request, response: Response) -> list[dict]:
    require_staff(request)
    set_no_store(response)
    return get_repo(request).list_youtube_videos()


@router.post("/admin/youtube-videos", status_code=201)
def create_youtube_video(payload: YoutubeVideoCreate, request: Request) -> dict:
    require_staff(request)
    return get_repo(request).create_youtube_video(payload.record())


@router.put("/admin/youtube-videos/{video_id}")
def update_youtube_video(video_id: str, payload: YoutubeVideoUpdate, request: Request) -> dict:
    require_staff(request)
    video = get_repo(request).update_youtube_video(video_id, payload.record())
    return _found(video, "Video not found", video_id)


@router.delete("/admin/youtube-videos/{video_id}")
def delete_youtube_video(video_id: str, request: Request) -> dict:
    require_staff(request)
    _deleted(get_repo(request).delete_youtube_video(video_id), "Video not found", video_id)
    return {"message": "Video deleted successfully"}
