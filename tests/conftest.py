"""Shared test fixtures for inventory matching tests."""

import numpy as np
import pytest

from inventory_match.models import ProductItem
from inventory_match.taxonomy import TaxonomyResolver


SYNONYM_HEADERS = ["CatCode", "nCategory", "nSubCategory", "Singular", "Synonyms"]

SYNONYM_ROWS = [
    {"CatCode": "010", "nCategory": "Flowers", "nSubCategory": "Rose",
     "Singular": "Rose", "Synonyms": "Roses, Rosebud"},
    {"CatCode": "011", "nCategory": "Flowers", "nSubCategory": "Peonies",
     "Singular": "Peony", "Synonyms": "Paeonia/Peony Bush"},
    {"CatCode": "020", "nCategory": "Greenery", "nSubCategory": "Fern",
     "Singular": "", "Synonyms": "Ferns,Boston Fern"},
    {"CatCode": "099", "nCategory": "Greenery", "nSubCategory": "Other Leaf",
     "Singular": "Leaf", "Synonyms": "Leaves"},
]

CODE_HEADERS = ["Code", "nCategory", "Category", "nSubCategory"]

CODE_ROWS = [
    {"Code": "7", "nCategory": "Greenery", "Category": "ARTIFICIAL PLANTS",
     "nSubCategory": "Succulent"},
    {"Code": "12", "nCategory": "Flowers", "Category": "Artificial Flowers",
     "nSubCategory": "Rose"},
    {"Code": "A1", "nCategory": "Flowers", "Category": "Artificial Flowers",
     "nSubCategory": "Peonies"},
    {"Code": "", "nCategory": "Flowers", "Category": "Artificial Flowers",
     "nSubCategory": "Tulip"},
]


def make_item(identity, **overrides):
    """ProductItem with sensible defaults for the AI category path."""
    values = {
        "code": f"P{identity:04d}",
        "sku": f"SKU-{identity:04d}",
        "description": "",
        "category": "ARTIFICIAL FLOWERS",
        "display_category": "Flowers",
        "sub_category": "Rose",
        "color": "Red",
        "supplier": "ACME",
        "list_price": 10.0,
        "stock": 5,
        "height": 50.0,
    }
    values.update(overrides)
    return ProductItem(id=identity, **values)


@pytest.fixture
def resolver():
    """Resolver loaded with the sample synonym and code feeds."""
    res = TaxonomyResolver()
    assert res.load_synonym_rows(SYNONYM_ROWS, SYNONYM_HEADERS)
    assert res.load_code_rows(CODE_ROWS, CODE_HEADERS)
    return res


@pytest.fixture
def snapshot(resolver):
    return resolver.snapshot


@pytest.fixture
def catalog():
    """Small mixed catalog covering every filter dimension."""
    return [
        make_item(1, description="Red rose stem", sub_category="Rose",
                  list_price=12.5, stock=3, height=60, supplier="ACME"),
        make_item(2, description="Blue hydrangea bush", sub_category="Hydrangea",
                  color="Blue", list_price=25.0, stock=0, height=45, supplier="BLOOM"),
        make_item(3, description="Small red peony", sub_category="Peonies",
                  list_price=8.0, stock=-2, height=30, supplier="ACME"),
        make_item(4, description="Boston fern hanging", category="ARTIFICIAL PLANTS",
                  display_category="Greenery", sub_category="Fern", color="Green",
                  list_price=40.0, stock=10, height=90, supplier="LEAFCO"),
        make_item(5, description="Large blue vase", category="PERIPHERAL",
                  display_category="Peripheral", sub_category="", color="Navy",
                  list_price=18.0, stock=1, height=25, supplier="BLOOM"),
    ]


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [200, 30, 30]
    return img


@pytest.fixture
def green_field_image():
    """Generate a 200x200 image filled with mid green."""
    img = np.zeros((200, 200, 3), dtype=np.uint8)
    img[:, :] = [10, 120, 10]
    return img


@pytest.fixture
def product_factory():
    """Factory building ProductItems with AI-path defaults."""
    return make_item
