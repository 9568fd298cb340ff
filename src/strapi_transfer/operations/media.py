"""Media URL and file-type helpers shared by export and import."""

import re
from dataclasses import dataclass
from urllib.parse import unquote, urljoin, urlparse

ALLOWED_AUDIOS = frozenset({"mp3", "wav", "ogg"})
ALLOWED_IMAGES = frozenset(
    {"png", "gif", "jpg", "jpeg", "svg", "bmp", "tif", "tiff", "webp", "heic", "heif", "ico"}
)
ALLOWED_VIDEOS = frozenset({"mp4", "avi", "webm", "hevc", "heifc"})

FILE_TYPES = ("any", "files", "images", "videos", "audios")


@dataclass(frozen=True)
class FileData:
    """Name, extension and hash derived from a media URL."""

    name: str
    extension: str
    hash: str


def is_absolute_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def to_absolute_url(public_hostname: str, url: str) -> str:
    """Prefix a relative media URL with the public hostname.

    Example:
        >>> to_absolute_url("https://cms.example.com", "/uploads/cover.png")
        'https://cms.example.com/uploads/cover.png'
        >>> to_absolute_url("https://cms.example.com", "https://cdn.example.com/a.png")
        'https://cdn.example.com/a.png'
    """
    if not url.startswith("/"):
        return url
    return urljoin(public_hostname.rstrip("/") + "/", url.lstrip("/"))


def _name_to_slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_")


def file_data_from_url(url: str) -> FileData:
    """Derive upload name, extension and hash from a media URL.

    The name is the URL path with slashes replaced by dashes; the hash is a
    slug of the name without its extension, which matches how the upload
    plugin hashes files it stores.

    Example:
        >>> file_data_from_url("https://cdn.example.com/uploads/My%20Cover.PNG")
        FileData(name='uploads-My Cover.PNG', extension='png', hash='uploads_My_Cover')
    """
    path = urlparse(unquote(url)).path
    name = path.strip("/").replace("/", "-")
    extension = path.rsplit(".", 1)[-1].lower() if "." in path.rsplit("/", 1)[-1] else ""
    stem = name[: -(len(extension) + 1)] if extension else name
    return FileData(name=name, extension=extension, hash=_name_to_slug(stem))


def is_extension_allowed(extension: str, allowed_types: tuple[str, ...] | list[str] | None) -> bool:
    """Check a file extension against a media attribute's ``allowedTypes``.

    Raises:
        ValueError: If an allowed type is not one of ``any``, ``files``,
            ``images``, ``videos``, ``audios``
    """
    types = allowed_types or ("any",)
    ext = extension.lower().lstrip(".")
    for file_type in types:
        if file_type in ("any", "files"):
            return True
        if file_type == "images":
            if ext in ALLOWED_IMAGES:
                return True
        elif file_type == "videos":
            if ext in ALLOWED_VIDEOS:
                return True
        elif file_type == "audios":
            if ext in ALLOWED_AUDIOS:
                return True
        else:
            raise ValueError(f"Strapi file type {file_type} not handled")
    return False
