"""
PDF tax invoice built with reportlab platypus.

The item table repeats its header row, so long invoices paginate on their own.
Helvetica has no rupee glyph; amounts are printed as "Rs.".
"""

from io import BytesIO
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from calculator import money
from schemas import Invoice, InvoiceView, Letterhead

MARGIN = 50

_styles = getSampleStyleSheet()
BODY = ParagraphStyle("body", parent=_styles["Normal"], fontName="Helvetica", fontSize=10, leading=13)
BOLD = ParagraphStyle("bold", parent=BODY, fontName="Helvetica-Bold")
SMALL = ParagraphStyle("small", parent=BODY, fontSize=8, leading=10)
TITLE = ParagraphStyle("title", parent=BOLD, fontSize=20, leading=24)
SUBTITLE = ParagraphStyle("subtitle", parent=BOLD, fontSize=16, leading=20)
RIGHT = ParagraphStyle("right", parent=BODY, alignment=TA_RIGHT)
RIGHT_BOLD = ParagraphStyle("right_bold", parent=BOLD, alignment=TA_RIGHT)
CELL = ParagraphStyle("cell", parent=BODY, fontSize=9, leading=11)
HEAD = ParagraphStyle("head", parent=BOLD, fontSize=9, leading=11, textColor=colors.white)


def _p(text, style=BODY) -> Paragraph:
    return Paragraph(xml_escape(str(text)), style)


def _rs(amount) -> str:
    return f"Rs. {money(amount)}"


def _num(value) -> str:
    return f"{value.normalize():f}"


def invoice_filename(invoice: Invoice) -> str:
    return f"Invoice_{invoice.invoice_number}_{invoice.date.isoformat()}.pdf"


def _header(view: InvoiceView, letterhead: Letterhead, width):
    inv = view.invoice
    state = (view.party.state if view.party else None) or "N/A"
    left = [_p(letterhead.name, TITLE), _p(letterhead.tagline, SUBTITLE), _p(letterhead.footer)]
    right = [
        _p("Tax Invoice", BOLD),
        _p(f"Invoice No: {inv.invoice_number}"),
        _p(f"Date: {inv.date.strftime('%d/%m/%Y')}"),
        _p(f"Place of Supply: {state}"),
    ]
    tbl = Table([[left, right]], colWidths=[width * 0.6, width * 0.4])
    tbl.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    return tbl


def _bill_to(view: InvoiceView):
    party = view.party
    flow = [_p("Bill To:", BOLD), _p((party.name if party else None) or "N/A")]
    address = (party.address if party else None) or "N/A"
    for line in address.splitlines() or ["N/A"]:
        flow.append(_p(line))
    flow.append(_p(f"Contact: {(party.phone if party else None) or 'N/A'}"))
    if party and party.email:
        flow.append(_p(f"Email: {party.email}"))
    if party and party.gst_number:
        flow.append(_p(f"GSTIN: {party.gst_number}"))
    flow.append(_p(f"State: {(party.state if party else None) or 'N/A'}"))
    return flow


def _items_table(view: InvoiceView, width):
    rows = [[_p(h, HEAD) for h in ("#", "Item Name", "HSN/SAC", "Quantity", "Unit", "Price/Unit", "GST", "Amount")]]
    for idx, line in enumerate(view.lines, start=1):
        rows.append([
            _p(idx, CELL),
            _p(line.name, CELL),
            _p(line.hsn, CELL),
            _p(_num(line.qty), CELL),
            _p(line.unit, CELL),
            _p(_rs(line.rate), CELL),
            _p(f"{_rs(line.tax)} ({_num(line.gst_rate)}%)", CELL),
            _p(_rs(line.amount), CELL),
        ])
    fractions = [0.05, 0.23, 0.11, 0.09, 0.08, 0.14, 0.16, 0.14]
    tbl = Table(rows, colWidths=[width * f for f in fractions], repeatRows=1)
    tbl.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(100 / 255, 100 / 255, 100 / 255)),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return tbl


def _totals(view: InvoiceView, width):
    inv = view.invoice
    rows = [
        [_p("Sub Total:"), _p(_rs(inv.subtotal), RIGHT)],
        [_p("Total Tax:"), _p(_rs(inv.tax), RIGHT)],
        [_p("Total:", BOLD), _p(_rs(inv.total), RIGHT_BOLD)],
        [_p("Received:", BOLD), _p(_rs(inv.received), RIGHT_BOLD)],
        [_p("Balance:", BOLD), _p(_rs(inv.balance), RIGHT_BOLD)],
    ]
    tbl = Table(rows, colWidths=[width * 0.2, width * 0.2], hAlign="RIGHT")
    tbl.setStyle(TableStyle([("LINEABOVE", (0, 2), (-1, 2), 0.8, colors.black)]))
    return tbl


def _closing(letterhead: Letterhead, width):
    terms = [_p("Terms and Conditions:", BOLD)] + [_p(t, SMALL) for t in letterhead.terms]
    sign = [Spacer(1, 12), _p(f"For: {letterhead.signatory}", SMALL),
            Spacer(1, 18), _p("Authorized Signatory", SMALL)]
    tbl = Table([[terms, sign]], colWidths=[width * 0.6, width * 0.4])
    tbl.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    return tbl


def render_invoice_pdf(view: InvoiceView, letterhead: Letterhead) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=40,
        bottomMargin=40,
        title=f"Invoice {view.invoice.invoice_number}",
    )
    width = doc.width

    story = [
        _header(view, letterhead, width),
        Spacer(1, 24),
        *_bill_to(view),
        Spacer(1, 18),
        _items_table(view, width),
        Spacer(1, 18),
        KeepTogether([
            _totals(view, width),
            Spacer(1, 18),
            _p("Invoice Amount In Words:", BOLD),
            _p(f"{view.amount_in_words} Rupees only"),
        ]),
        Spacer(1, 30),
        KeepTogether([_closing(letterhead, width)]),
    ]
    doc.build(story)
    return buf.getvalue()
