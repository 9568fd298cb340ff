"""Content type UID utilities.

Strapi content type UIDs look like ``api::article.article`` or
``plugin::upload.file``. These helpers turn them into REST endpoints and
classify them for whole-store selection.
"""

ADMIN_USER_UID = "admin::user"
MEDIA_FILE_UID = "plugin::upload.file"


def uid_to_endpoint(uid: str) -> str:
    """Convert content type UID to its collection endpoint.

    Handles common English pluralization patterns. For custom pluralization
    (e.g., "person" -> "people"), use the schema's plural_name instead.

    Args:
        uid: Content type UID (e.g., "api::article.article", "api::blog.post")

    Returns:
        API endpoint (e.g., "articles", "posts")

    Examples:
        >>> uid_to_endpoint("api::article.article")
        'articles'
        >>> uid_to_endpoint("api::category.category")
        'categories'
        >>> uid_to_endpoint("api::class.class")
        'classes'
    """
    name = extract_model_name(uid)
    if name == uid and "::" not in uid:
        return uid
    if name.endswith("y") and not name.endswith(("ay", "ey", "oy", "uy")):
        return name[:-1] + "ies"
    if name.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


def extract_model_name(uid: str) -> str:
    """Extract the model name from a content type UID.

    Examples:
        >>> extract_model_name("api::article.article")
        'article'
        >>> extract_model_name("plugin::users-permissions.user")
        'user'
    """
    parts = uid.split("::")
    if len(parts) == 2:
        model_parts = parts[1].split(".")
        return model_parts[-1] if model_parts else parts[1]
    return uid


def is_api_content_type(uid: str) -> bool:
    """Check if UID is an API content type (vs plugin or admin).

    Examples:
        >>> is_api_content_type("api::article.article")
        True
        >>> is_api_content_type("plugin::users-permissions.user")
        False
    """
    return uid.startswith("api::")


def is_plugin_content_type(uid: str) -> bool:
    """Check if UID belongs to a plugin."""
    return uid.startswith("plugin::")
