from decimal import Decimal

from calculator import complete_lines, compute_invoice_totals, compute_line, effective_gst_rate, money
from schemas import DraftLine, Item, LineItem


def _line(qty, rate, gst):
    return LineItem(item_id=1, qty=qty, rate=rate, gst_rate=gst)


def test_totals_follow_line_items():
    lines = [_line(2, "100", 18), _line(3, "33.33", 5), _line("1.5", "10", 0)]
    totals = compute_invoice_totals(lines, received=Decimal("50"))

    subtotal = Decimal("200") + Decimal("99.99") + Decimal("15")
    tax = Decimal("36") + Decimal("99.99") * 5 / 100
    assert totals.subtotal == subtotal
    assert totals.tax == tax
    assert totals.total == subtotal + tax
    assert totals.balance == subtotal + tax - 50
    assert totals.paid is False


def test_zero_balance_counts_as_paid():
    totals = compute_invoice_totals([_line(2, 100, 18)], received=236)
    assert totals.balance == 0
    assert totals.paid is True


def test_overpayment_is_paid():
    assert compute_invoice_totals([_line(1, 10, 0)], received=20).paid is True


def test_no_per_line_rounding():
    # three lines of 0.005 tax each round to 0.01 per line but total 0.015 exactly
    lines = [_line(1, "0.05", 10) for _ in range(3)]
    totals = compute_invoice_totals(lines)
    assert totals.tax == Decimal("0.015")
    assert money(totals.tax) == "0.02"


def test_gst_resolution_order():
    item = Item(name="Cement", rate=350, gst_rate=28)
    assert effective_gst_rate(Decimal("5"), item) == Decimal("5")
    assert effective_gst_rate(None, item) == Decimal("28")
    assert effective_gst_rate(None, None) == Decimal("18")
    assert effective_gst_rate(None, Item(name="Exempt", gst_rate=0)) == Decimal("0")


def test_compute_line_snapshots_catalog_fields():
    item = Item(id=7, name="Steel Rod", hsn="7214", unit="Kg", rate=60, gst_rate=18)
    line = compute_line(DraftLine(item_id=7, qty=10), item)

    assert line.rate == Decimal("60")
    assert line.total == Decimal("600")
    assert (line.name, line.hsn, line.gst_rate) == ("Steel Rod", "7214", Decimal("18"))


def test_user_rate_overrides_catalog_rate():
    item = Item(id=7, name="Steel Rod", rate=60)
    line = compute_line(DraftLine(item_id=7, qty=2, rate="55.5"), item)
    assert line.total == Decimal("111.0")


def test_incomplete_rows_are_skipped():
    item = Item(id=1, name="Bricks", rate=8)
    rows = [
        DraftLine(),
        DraftLine(item_id=1),
        DraftLine(item_id=1, qty=0),
        DraftLine(item_id=1, qty=5, rate=0),
        DraftLine(qty=5, rate=8),
        DraftLine(item_id=1, qty=5),
    ]
    lines = complete_lines(rows, lambda item_id: item if item_id == 1 else None)
    assert len(lines) == 1
    assert lines[0].total == Decimal("40")


def test_removed_catalog_item_still_yields_line():
    line = compute_line(DraftLine(item_id=99, qty=1, rate=10), None)
    assert line.name == ""
    assert line.gst_rate == Decimal("18")
