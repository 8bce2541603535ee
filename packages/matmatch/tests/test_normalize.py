"""Tests for the normalization pipeline."""

from matmatch.config import NormalizationConfig, SearchConfig
from matmatch.normalize import normalize, words


def test_basic_normalization():
    assert normalize("Пеноплэкс Комфорт 50мм") == "пеноплэкс комфорт 50мм"


def test_empty_and_none():
    assert normalize("") == ""
    assert normalize(None) == ""
    assert normalize("   \t ") == ""


def test_yo_folding():
    assert normalize("Жёлоб водосточный") == "желоб водосточный"


def test_yo_folding_can_be_disabled():
    config = NormalizationConfig(fold_yo=False)
    assert normalize("Жёлоб", config) == "жёлоб"


def test_quotes_and_punctuation_deleted():
    assert normalize('Утеплитель «Технониколь», "Роквул"!') == "утеплитель технониколь роквул"


def test_hyphens_digits_and_separators_survive():
    assert normalize("BVR-R DN32 100x50 2,5") == "bvr-r dn32 100x50 2,5"


def test_unicode_nfkc():
    # Fullwidth letters and digits fold to ASCII
    assert normalize("ＤＮ３２") == "dn32"


def test_whitespace_collapsed():
    assert normalize("  кран   шаровой\n\tрезьбовой ") == "кран шаровой резьбовой"


def test_accepts_search_config():
    assert normalize("Кран", SearchConfig()) == "кран"


def test_idempotent():
    once = normalize("Кабель ВВГнг-LS 3х2,5 «Кольчугино»")
    assert normalize(once) == once


def test_words():
    assert words("кран шаровой") == ["кран", "шаровой"]
    assert words("") == []
