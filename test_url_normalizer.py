#!/usr/bin/env python3
"""Tests for URL normalization, image classification and filename helpers."""

from url_normalizer import (
    OrderedUrlSet,
    extension_of,
    is_image_url,
    safe_file_name,
    to_absolute,
    url_basename,
)

BASE = "https://www.botech.ma/"


def test_to_absolute_empty_input():
    assert to_absolute(None, BASE) is None
    assert to_absolute("", BASE) is None
    assert to_absolute("   ", BASE) is None


def test_to_absolute_keeps_absolute_urls():
    assert to_absolute("https://cdn.example.com/a.jpg", BASE) == "https://cdn.example.com/a.jpg"
    assert to_absolute("http://example.com/x", BASE) == "http://example.com/x"


def test_to_absolute_root_relative():
    assert to_absolute("/images/produits/lit.jpg", BASE) == \
        "https://www.botech.ma/images/produits/lit.jpg"
    # Protocol-relative references inherit the origin scheme
    assert to_absolute("//cdn.botech.ma/a.png", BASE) == "https://cdn.botech.ma/a.png"


def test_to_absolute_path_relative():
    assert to_absolute("prod/berceaux-maroc", BASE) == "https://www.botech.ma/prod/berceaux-maroc"
    assert to_absolute("./images/a.jpg", BASE) == "https://www.botech.ma/images/a.jpg"
    # Base without trailing slash still resolves against the root
    assert to_absolute("details/lit-1", "https://www.botech.ma") == \
        "https://www.botech.ma/details/lit-1"


def test_to_absolute_ignores_base_path():
    shop = "https://host/shop/"
    assert to_absolute("details/x", shop) == "https://host/details/x"
    assert to_absolute("details/x", shop) == to_absolute("/details/x", shop)
    assert to_absolute("./details/x", "https://host/shop") == "https://host/details/x"


def test_to_absolute_malformed_returns_none():
    assert to_absolute("/[broken", "http://[::1") is None


def test_to_absolute_is_idempotent():
    inputs = [
        "prod/berceaux-maroc",
        "./images/a.jpg",
        "/images/produits/lit.jpg",
        "//cdn.botech.ma/a.png",
        "https://cdn.example.com/a.jpg",
        "details/lit?id=3",
    ]
    for raw in inputs:
        once = to_absolute(raw, BASE)
        assert once is not None
        assert to_absolute(once, BASE) == once, raw


def test_is_image_url():
    assert is_image_url("https://x/a.PNG?v=2")
    assert is_image_url("https://x/a.jpeg")
    assert is_image_url("https://x/a.JPG")
    assert is_image_url("https://x/a.webp")
    assert not is_image_url("https://x/a.pdf")
    assert not is_image_url("https://x/a.gif")
    assert not is_image_url("https://x/a.jpg.html")
    assert not is_image_url("https://x/page?img=a.jpg")


def test_extension_of():
    assert extension_of("https://x/a.PNG?v=2") == ".png"
    assert extension_of("https://x/a.jpeg") == ".jpeg"
    assert extension_of("https://x/image") == ".jpg"


def test_url_basename():
    assert url_basename("https://x/images/produits/lit%201.jpg?v=2") == "lit%201.jpg"
    assert url_basename("https://x/images/") == "images"


def test_safe_file_name():
    assert safe_file_name("Éclairage médical") == "Éclairage_médical"
    assert safe_file_name("Divan d'examen") == "Divan_d'examen"
    assert safe_file_name('a/b:c*d?"e<f>g|h') == "abcdefgh"
    assert safe_file_name("name. . ") == "name"
    assert safe_file_name("..") == ""
    assert safe_file_name("CON") == ""
    assert len(safe_file_name("x" * 400)) == 150


def test_safe_file_name_bounds_utf8_bytes():
    name = safe_file_name("é" * 149 + ".jpg")
    assert name.endswith(".jpg")
    assert name == "é" * 123 + ".jpg"
    assert len(name.encode("utf-8")) == 250

    # No extension: the whole name is cut on a character boundary
    bare = safe_file_name("€" * 120)
    assert bare == "€" * 83

    # Short names are left alone
    assert safe_file_name("é" * 20 + ".png") == "é" * 20 + ".png"


def test_safe_file_name_drops_oversized_extension():
    name = safe_file_name("a." + "b" * 300)
    assert len(name) == 150
    assert name.startswith("a.bbb")


def test_ordered_url_set_preserves_first_insertion():
    urls = OrderedUrlSet(["b", "a", "b"])
    assert urls.add("c")
    assert not urls.add("a")
    urls.update(["d", "c"])
    assert urls.to_list() == ["b", "a", "c", "d"]
    assert len(urls) == 4
    assert "d" in urls
