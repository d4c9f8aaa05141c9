import pytest

from words import to_words


@pytest.mark.parametrize("num,expected", [
    (0, "Zero"),
    (7, "Seven"),
    (13, "Thirteen"),
    (40, "Forty"),
    (99, "Ninety Nine"),
    (100, "One Hundred"),
    (236, "Two Hundred Thirty Six"),
    (1001, "One Thousand One"),
    (21000, "Twenty One Thousand"),
    (100000, "One Lakh"),
    (250075, "Two Lakh Fifty Thousand Seventy Five"),
    (10000000, "One Crore"),
    (12345678, "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight"),
    (999999999, "Ninety Nine Crore Ninety Nine Lakh Ninety Nine Thousand Nine Hundred Ninety Nine"),
])
def test_indian_grouping(num, expected):
    assert to_words(num) == expected


def test_thousands_of_crores():
    assert to_words(10 ** 10) == "One Thousand Crore"
    assert to_words(1234 * 10 ** 7) == "One Thousand Two Hundred Thirty Four Crore"


def test_no_digits_and_no_stray_spaces():
    for n in list(range(0, 2500)) + [10 ** 5 - 1, 10 ** 7 + 1, 10 ** 9, 10 ** 12 + 7]:
        words = to_words(n)
        assert not any(ch.isdigit() for ch in words)
        assert words == words.strip()
        assert "  " not in words
        assert "and" not in words.split()


def test_negative_rejected():
    with pytest.raises(ValueError):
        to_words(-1)
