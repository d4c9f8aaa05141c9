import datetime as dt
from decimal import Decimal

import pytest

import reports
from schemas import DraftLine, InvoiceDraft, Item, Party


@pytest.fixture
def books(workspace):
    acme, _ = workspace.add_party(Party(name="Acme Traders"))
    zen, _ = workspace.add_party(Party(name="Zen Stores"))
    pen, _ = workspace.add_item(Item(name="Pen", rate=100, gst_rate=18, unit="Box", stock=40))
    workspace.add_item(Item(name="Paper", rate="250.50", gst_rate=12))

    def bill(party, qty, received):
        invoice, _ = workspace.save_invoice(InvoiceDraft(
            party_id=party.id,
            date=dt.date(2024, 4, 1),
            received=received,
            rows=[DraftLine(item_id=pen.id, qty=qty)],
        ))
        return invoice

    bill(acme, 2, 50)    # 236 total, 186 due
    bill(acme, 1, 0)     # 118 total, 118 due
    bill(zen, 1, 118)    # settled
    return workspace, acme, zen


def test_party_outstanding_sums_unpaid_balances(books):
    ws, acme, zen = books
    assert reports.party_outstanding(ws.state, acme.id) == Decimal("304")
    assert reports.party_outstanding(ws.state, zen.id) == Decimal("0")


def test_dashboard_totals(books):
    ws, _, _ = books
    data = ws.dashboard()

    assert data["total_sales"] == "472.00"
    assert data["total_outstanding"] == "304.00"
    assert data["total_items"] == 2
    assert data["total_parties"] == 2
    assert len(data["recent_invoices"]) == 3
    assert data["offline"] is False


def test_recent_invoices_are_capped(workspace):
    party, _ = workspace.add_party(Party(name="P"))
    item, _ = workspace.add_item(Item(name="I", rate=10))
    for _ in range(7):
        workspace.save_invoice(InvoiceDraft(
            party_id=party.id, date=dt.date(2024, 4, 1), rows=[DraftLine(item_id=item.id, qty=1)]
        ))
    assert len(workspace.dashboard()["recent_invoices"]) == 5


def test_invoice_list_is_sorted_and_labelled(books):
    ws, _, _ = books
    rows = ws.invoice_list()

    assert [r["invoice_number"] for r in rows] == ["1003", "1002", "1001"]
    assert [r["status"] for r in rows] == ["PAID", "PENDING", "PENDING"]
    assert rows[0]["party_name"] == "Zen Stores"
    assert rows[2]["balance"] == "186.00"


def test_unknown_party_is_labelled(books):
    ws, _, _ = books
    ws.state.parties.clear()
    assert {r["party_name"] for r in ws.invoice_list()} == {"Unknown Party"}


def test_sales_report(books):
    ws, _, _ = books
    data = ws.report(reports.sales_report)
    assert data == {
        "total_sales": "472.00",
        "total_invoices": 3,
        "average_invoice": "157.33",
    }


def test_sales_report_without_invoices(workspace):
    data = workspace.report(reports.sales_report)
    assert data["total_invoices"] == 0
    assert data["average_invoice"] == "0.00"


def test_party_report_lists_only_debtors(books):
    ws, acme, _ = books
    data = ws.report(reports.party_report)
    assert data["has_outstanding"] is True
    assert data["parties"] == [{"party_id": acme.id, "name": "Acme Traders", "outstanding": "304.00"}]


def test_party_report_when_all_settled(workspace):
    workspace.add_party(Party(name="Paid Up"))
    data = workspace.report(reports.party_report)
    assert data == {"parties": [], "has_outstanding": False}


def test_item_report(books):
    ws, _, _ = books
    rows = ws.report(reports.item_report)["items"]
    assert [(r["name"], r["stock"], r["unit"], r["rate"]) for r in rows] == [
        ("Pen", 40, "Box", "100.00"),
        ("Paper", 0, None, "250.50"),
    ]
