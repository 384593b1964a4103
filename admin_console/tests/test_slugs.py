import pytest

from admin_console.services.slugs import fold, slugify

@pytest.mark.parametrize("text,expected", [
    ("Ambalaj Üretimi", "ambalaj-uretimi"),
    ("Kozmetik & Güzellik", "kozmetik-guzellik"),
    ("  Çözüm   Ortaklığı!  ", "cozum-ortakligi"),
    ("ISO 22716 Sertifikası", "iso-22716-sertifikasi"),
    ("", ""),
])
def test_slugify(text, expected):
    assert slugify(text) == expected

def test_slugify_is_idempotent():
    once = slugify("Şişe & Kapak Çeşitleri")
    assert slugify(once) == once

def test_fold_strips_turkish_diacritics():
    assert fold("Çözüm İçin Ağır Şişe") == "cozum icin agir sise"
