import pytest

from awinsync.logic import load_vocabulary
from awinsync.logic.slugs import comparison_key, slugify


def test_slugify_basic():
    assert slugify("Magic Wand  Mini!") == "magic-wand-mini"
    assert slugify("--Rose_Gold--") == "rose-gold"
    assert slugify("Crème Brûlée") == "creme-brulee"


def test_slugify_is_deterministic():
    text = "Satisfyer Pro 2 – Next Generation"
    assert slugify(text) == slugify(text)
    assert slugify(slugify(text)) == slugify(text)


@pytest.mark.parametrize("value", [None, "", "   ", "!!!"])
def test_slugify_empty(value):
    assert slugify(value) == ""


def test_comparison_key_falls_back_when_everything_is_noise():
    slug = "rechargeable-dual-vibrator-pink-black"
    assert comparison_key(slug) == slug


def test_comparison_key_strips_noise_tokens():
    assert comparison_key("magic-wand-mini") == "magic-wand"
    assert comparison_key("rabbit-vibrator-purple-xl-20cm-bliss") == "bliss"
    assert comparison_key("wand-7-inch-pink") == "wand-inch"
    assert comparison_key("wand-18cm-rosegold") == "wand"


def test_comparison_key_empty():
    assert comparison_key("") == ""


def test_vocabulary_includes_concatenated_colors():
    vocabulary = load_vocabulary()
    assert "rose-gold" in vocabulary.colors
    assert "rosegold" in vocabulary.colors
    assert "xxl" in vocabulary.sizes
    with pytest.raises(AttributeError):
        vocabulary.colors.add("mauve")
