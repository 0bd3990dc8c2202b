"""Album listings and signed delivery URLs for the viewer."""

from typing import Optional

from photo_gallery.core.config import GallerySettings

from .albums import DeliveryUrls, list_albums, list_photos
from .signing import CloudFrontUrlSigner


def build_signer(settings: GallerySettings) -> Optional[CloudFrontUrlSigner]:
    if not settings.signing_enabled:
        return None
    return CloudFrontUrlSigner.from_key_file(
        settings.cloudfront_base_url,
        settings.cloudfront_key_id,
        settings.cloudfront_private_key_file,
        expiration_hours=settings.cloudfront_expiration_hours,
    )


def build_delivery_urls(
    settings: GallerySettings, signer: Optional[CloudFrontUrlSigner] = None
) -> Optional[DeliveryUrls]:
    """URL builder for the viewer; URLs stay unsigned in cookie delivery mode."""
    if not settings.cloudfront_base_url:
        return None
    return DeliveryUrls(
        settings.cloudfront_base_url,
        settings.thumb_prefix,
        settings.medium_prefix,
        signer=signer if settings.delivery_mode == "url" else None,
    )


__all__ = [
    "CloudFrontUrlSigner",
    "DeliveryUrls",
    "build_delivery_urls",
    "build_signer",
    "list_albums",
    "list_photos",
]
