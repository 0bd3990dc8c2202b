from fastapi import Depends, FastAPI, Query, Response

from photo_gallery.core.config import GallerySettings
from photo_gallery.core.env import configure_logging, load_dotenv_if_present
from photo_gallery.gallery import build_delivery_urls, build_signer, list_albums, list_photos
from photo_gallery.index import PhotoStore, build_store

app = FastAPI(title="Photo Gallery API")

load_dotenv_if_present()
configure_logging()

settings = GallerySettings.from_env()
photo_store = build_store(settings)
photo_store.load()
signer = build_signer(settings)
delivery_urls = build_delivery_urls(settings, signer)


def get_store() -> PhotoStore:
    # The ingest process rewrites the store; pick up its latest state.
    photo_store.refresh()
    return photo_store


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/albums.json")
def albums(store: PhotoStore = Depends(get_store)) -> list[str]:
    """Album keys (unix timestamps of the day) as strings, most recent first."""
    return [str(key) for key in list_albums(store)]


@app.get("/images.json")
def images(
    response: Response,
    album_keys: list[int] = Query(default=[], alias="albums"),
    store: PhotoStore = Depends(get_store),
) -> list[dict]:
    photos = list_photos(store, album_keys, delivery_urls)
    if signer is not None and settings.delivery_mode == "cookie":
        for name, value in signer.signed_cookies().items():
            response.set_cookie(name, value, httponly=True, secure=True)
    return [photo.to_public() for photo in photos]
