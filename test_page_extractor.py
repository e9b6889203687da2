#!/usr/bin/env python3
"""Tests for listing and product page extraction."""

from page_extractor import (
    extract_category_image_urls,
    extract_product_images,
    extract_product_links,
)

BASE = "https://www.botech.ma/"

LISTING_HTML = """
<html>
  <head><title>Berceaux</title></head>
  <body>
    <img src="/images/banner.jpg" />
    <div class="single-product-item">
      <div class="img-holder">
        <a href="details/berceau-bb1"><img src="images/produits/bb1-thumb.jpg" /></a>
      </div>
      <h3 class="product-title"><a href="details/berceau-bb1">Berceau BB1</a></h3>
    </div>
    <div class="single-product-item">
      <div class="img-holder">
        <a href="/prod/berceau-bb2"><img src="/images/produits/bb2-thumb.PNG?v=3" /></a>
      </div>
      <h3 class="product-title"><a href="/contact">Nous contacter</a></h3>
    </div>
    <div class="single-product-item">
      <div class="img-holder">
        <img src="/images/produits/brochure.pdf" />
        <img />
      </div>
    </div>
  </body>
</html>
"""

PRODUCT_HTML = """
<html>
  <body>
    <div class="img-holder">
      <img src="/images/produits/bb1-main.jpg" data-imagezoom="/images/produits/bb1-zoom.jpg" />
    </div>
    <div class="thumb-image" data-imagezoom="/images/produits/bb1-side.webp"></div>
    <div class="thumb-image"><img data-src="/images/produits/bb1-back.jpeg" /></div>
    <img src="/images/produits/bb1-main.jpg" />
    <img src="https://www.botech.ma/images/Produits/bb1-detail.jpg" />
    <img src="/images/logo.png" />
    <img src="/images/produits/spec-sheet.pdf" />
  </body>
</html>
"""


def test_extract_category_image_urls():
    urls = extract_category_image_urls(LISTING_HTML, BASE)
    assert urls.to_list() == [
        "https://www.botech.ma/images/produits/bb1-thumb.jpg",
        "https://www.botech.ma/images/produits/bb2-thumb.PNG?v=3",
    ]


def test_extract_product_links():
    links = extract_product_links(LISTING_HTML, BASE)
    # Image and title anchors point to the same page: deduplicated
    assert links.to_list() == [
        "https://www.botech.ma/details/berceau-bb1",
        "https://www.botech.ma/prod/berceau-bb2",
    ]


def test_extract_product_images_unions_both_passes():
    urls = extract_product_images(PRODUCT_HTML, BASE)
    assert urls.to_list() == [
        "https://www.botech.ma/images/produits/bb1-main.jpg",
        "https://www.botech.ma/images/produits/bb1-side.webp",
        "https://www.botech.ma/images/produits/bb1-back.jpeg",
        "https://www.botech.ma/images/Produits/bb1-detail.jpg",
    ]


def test_extractors_are_total_on_empty_or_unrelated_input():
    for html in ("", "<html></html>", b"<p>no cards</p>", None):
        assert len(extract_category_image_urls(html, BASE)) == 0
        assert len(extract_product_links(html, BASE)) == 0
        assert len(extract_product_images(html, BASE)) == 0


def test_extractors_are_idempotent():
    first = extract_product_images(PRODUCT_HTML, BASE).to_list()
    second = extract_product_images(PRODUCT_HTML, BASE).to_list()
    assert first == second
