from typing import Optional

from knowledgebase.core.errors import InvalidInput


def get_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def validate_pdf_type(filename: Optional[str], content_type: Optional[str]) -> None:
    """Accept when either the MIME type or the extension says PDF."""
    if "pdf" in (content_type or "").lower():
        return
    if get_extension(filename) == "pdf":
        return
    raise InvalidInput("Invalid file type. Please upload a PDF file.")


def validate_file_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise InvalidInput(f"File too large. Maximum size is {max_mb}MB.")
