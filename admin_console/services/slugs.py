import re
import unicodedata

# Letters NFKD does not decompose into base + combining mark
_TRANSLITERATION = str.maketrans({
    "ı": "i",
    "ğ": "g",
    "ş": "s",
    "ç": "c",
    "ö": "o",
    "ü": "u",
    "ß": "ss",
    "æ": "ae",
    "ø": "o",
    "đ": "d",
    "ł": "l",
})

def fold(text: str) -> str:
    """Lowercase and strip diacritics: "Çözüm İçin" -> "cozum icin"."""
    lowered = (text or "").lower().translate(_TRANSLITERATION)
    decomposed = unicodedata.normalize("NFKD", lowered)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))

def slugify(text: str) -> str:
    """URL-safe slug; idempotent, so slugify(slugify(x)) == slugify(x)."""
    return re.sub(r"[^a-z0-9]+", "-", fold(text)).strip("-")
