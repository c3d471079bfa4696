from app.config import settings


def allowed_image_types() -> set[str]:
    return {t.strip().lower() for t in (settings.ALLOWED_IMAGE_TYPES or "").split(",") if t.strip()}


def normalize_content_type(value: str | None) -> str:
    # "image/png; charset=binary" -> "image/png"
    return (value or "").split(";", 1)[0].strip().lower()
