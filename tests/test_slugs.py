from __future__ import annotations

import re

import pytest

from utils.slugs import is_slug, safe_base_name, slugify


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Henrietta!!", "henrietta"),
        ("  Big Bertha  ", "big-bertha"),
        ("Goat #3 -- Nubian", "goat-3-nubian"),
        ("--already-slugged--", "already-slugged"),
        ("Crème Brûlée", "cr-me-br-l-e"),
        ("!!!", ""),
    ],
)
def test_slugify_examples(name: str, expected: str) -> None:
    assert slugify(name) == expected


def test_slugify_output_shape_is_stable() -> None:
    for name in ["Henrietta!!", "Mr. Feathers_II", "ÀÉÎ 42", "a  b\tc\nd", "UPPER lower"]:
        slug = slugify(name)
        assert slug == slugify(name)
        assert slug == slug.lower()
        assert re.fullmatch(r"[a-z0-9-]*", slug)
        assert not slug.startswith("-") and not slug.endswith("-")
        assert "--" not in slug


def test_is_slug_rejects_path_tricks() -> None:
    assert is_slug("henrietta")
    assert is_slug("goat-3")
    assert not is_slug("../etc")
    assert not is_slug("Henrietta")
    assert not is_slug("")
    assert not is_slug("-edge")


def test_safe_base_name_drops_extension() -> None:
    assert safe_base_name("My Photo (1).JPG") == "my-photo-1"
    assert safe_base_name("archive.tar.gz") == "archive-tar"
    assert safe_base_name(".jpg") == "jpg"
    assert safe_base_name("") == "image"
    assert safe_base_name("???.png") == "image"
