"""Text normalization utilities."""
import re
import unicodedata

# Characters that are unsafe in file names on at least one common platform
_SPECIAL_CHARS = re.compile(r"""[?\[\]/\\=<>:;,'"&$#*()|~`!{}%+^@]""")


def sanitize_file_name(name: str, fallback: str = "untitled") -> str:
    """
    Turn an arbitrary display name into a filesystem-safe segment.

    - Transliterate to ASCII (accents dropped, other symbols removed)
    - Remove shell and path special characters
    - Collapse whitespace and dashes into a single dash
    - Trim leading/trailing dots, dashes and underscores

    "Summer '24 / Beach" -> "Summer-24-Beach"
    """
    if not name:
        return fallback

    # Normalize unicode, then drop anything outside ASCII
    text = unicodedata.normalize("NFKD", name)
    text = text.encode("ascii", "ignore").decode("ascii")

    # Control characters
    text = "".join(ch for ch in text if ch.isprintable())

    text = _SPECIAL_CHARS.sub("", text)
    text = re.sub(r"[\s-]+", "-", text)
    text = text.strip(".-_")

    return text or fallback


def format_size(num_bytes: int) -> str:
    """Human readable byte count: 1536 -> '1.5 KB'."""
    size = float(num_bytes or 0)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
