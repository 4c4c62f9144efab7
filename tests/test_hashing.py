import pytest

from navi.hashing import fnv


@pytest.mark.parametrize("text", ["", "git", "docker, compose", "ünïcödé ⠀"])
def test_fnv_fits_in_64_bits(text):
    value = fnv(text)
    assert 0 <= value < 2**64


def test_fnv_is_deterministic_and_case_sensitive():
    built = "".join(["s", "s", "h"])
    first = fnv("ssh")
    assert first == fnv(built)
    assert first != fnv("SSH")


def test_fnv_distinguishes_different_strings():
    assert len({fnv("a"), fnv("b"), fnv("ab"), fnv("ba"), fnv("")}) == 5


def test_fnv_is_sensitive_to_trailing_content():
    assert fnv("tag") != fnv("tag ")