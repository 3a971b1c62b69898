"""Request input validation: project names and entry-file content."""

from stencil.foundation.errors import ErrorCode, ValidationError

_SEPARATORS = ("/", "\\")


def validate_name(raw: str | None) -> str:
    """Strip and check a project name before it is used as a key or directory.

    Raises:
        ValidationError: If the name is empty or contains a path separator.
    """
    name = (raw or "").strip()
    if not name:
        raise ValidationError(context={"detail": "name is required"})
    if any(sep in name for sep in _SEPARATORS):
        raise ValidationError(context={"detail": f"'{name}' contains a path separator"})
    if name in (".", ".."):
        raise ValidationError(context={"detail": f"'{name}' is not a directory name"})
    return name


def validate_content(field: str, content: str | None) -> str | None:
    """Check that replacement file content can be written as UTF-8.

    Raises:
        ValidationError: If ``content`` holds characters UTF-8 cannot encode,
            such as lone surrogates from a JSON ``\\ud800`` escape.
    """
    if content:
        try:
            content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValidationError(
                code=ErrorCode.INVALID_CONTENT,
                context={"field": field, "detail": f"{e.reason} at position {e.start}"},
                cause=e,
            ) from e
    return content
