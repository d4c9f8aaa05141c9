"""Indian numbering system (crore / lakh / thousand) amount in words."""

ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
TEENS = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen"]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000


def _below_thousand(num: int) -> list:
    parts = []
    if num > 99:
        parts += [ONES[num // 100], "Hundred"]
        num %= 100
    if num > 19:
        parts.append(TENS[num // 10])
        num %= 10
    elif num > 9:
        parts.append(TEENS[num - 10])
        num = 0
    if num > 0:
        parts.append(ONES[num])
    return parts


def _group(num: int) -> list:
    # crore counts can exceed 999 (10^10 and up), so they recurse
    if num >= THOUSAND:
        return to_words(num).split()
    return _below_thousand(num)


def to_words(num: int) -> str:
    """
    to_words(1001) -> "One Thousand One"
    to_words(12345678) -> "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight"
    """
    num = int(num)
    if num < 0:
        raise ValueError("amount in words needs a non-negative integer")
    if num == 0:
        return "Zero"

    crores, rest = divmod(num, CRORE)
    lakhs, rest = divmod(rest, LAKH)
    thousands, hundreds = divmod(rest, THOUSAND)

    words = []
    if crores:
        words += _group(crores) + ["Crore"]
    if lakhs:
        words += _below_thousand(lakhs) + ["Lakh"]
    if thousands:
        words += _below_thousand(thousands) + ["Thousand"]
    if hundreds:
        words += _below_thousand(hundreds)
    return " ".join(words).strip()
