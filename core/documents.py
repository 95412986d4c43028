"""Printable PDF documents: work order (quote / OS / receipt) and financial report."""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from core.models import (
    Customer, FinancialReport, Vehicle, WorkOrder, WorkOrderStatus, WorkshopSettings,
)
from core.models.money import ZERO
from core.work_orders import compute_total
from utils.formatting import format_currency, format_date
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
HEADER_HEIGHT = 90
FOOTER_HEIGHT = 40
ROW_HEIGHT = 20

PRIMARY = HexColor("#0F172A")
ACCENT = HexColor("#0284C7")
MUTED = HexColor("#64748B")
PANEL = HexColor("#F1F5F9")
BORDER = HexColor("#CBD5E1")
WHITE = HexColor("#FFFFFF")

CUSTOMER_FALLBACK = "Consumidor Final"
VEHICLE_FALLBACK = "Veículo Não Identificado"


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    """A generated PDF ready to be sent to the client."""

    filename: str
    content: bytes
    page_count: int
    media_type: str = "application/pdf"


@dataclass(frozen=True, slots=True)
class DocumentTotals:
    """Computed values printed in a work order's totals block."""

    subtotal: Decimal
    discount: Decimal
    total: Decimal


def work_order_totals(order: WorkOrder) -> DocumentTotals:
    """Subtotal, discount and net total, derived from the lines (never the cached total)."""
    return DocumentTotals(
        subtotal=order.subtotal,
        discount=order.discount,
        total=compute_total(order.services, order.discount),
    )


def document_title(status: WorkOrderStatus) -> str:
    if status == WorkOrderStatus.PENDING_QUOTE:
        return "ORÇAMENTO"
    if status == WorkOrderStatus.FINISHED:
        return "RECIBO / GARANTIA"
    return "ORDEM DE SERVIÇO"


def work_order_filename(order: WorkOrder, customer: Customer | None) -> str:
    """OS_<first 4 id chars>_<customer name, letters/digits only, max 15>.pdf"""
    code = order.id.hex[:4].upper() if order.id else "NOVA"
    name = customer.name if customer else CUSTOMER_FALLBACK
    safe = re.sub(r"[^0-9A-Za-z]+", "_", name).strip("_")[:15] or "Cliente"
    return f"OS_{code}_{safe}.pdf"


class _NumberedCanvas(canvas.Canvas):
    """
    Canvas that defers page output so every footer can print 'Página X de Y'.

    The footer text is taken from the policy_line attribute.
    """

    def __init__(self, *args, policy_line: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.policy_line = policy_line
        self._saved_pages = []

    def showPage(self):
        self._saved_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_pages)
        for state in self._saved_pages:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    @property
    def page_count(self) -> int:
        return len(self._saved_pages)

    def _draw_footer(self, total: int) -> None:
        self.setStrokeColor(BORDER)
        self.line(MARGIN, FOOTER_HEIGHT, PAGE_WIDTH - MARGIN, FOOTER_HEIGHT)
        self.setFont("Helvetica", 8)
        self.setFillColor(MUTED)
        if self.policy_line:
            self.drawString(MARGIN, FOOTER_HEIGHT - 14, self.policy_line)
        self.drawRightString(
            PAGE_WIDTH - MARGIN, FOOTER_HEIGHT - 14, f"Página {self._pageNumber} de {total}"
        )


def _truncate(text: str, width: float, font: str = "Helvetica", size: int = 8) -> str:
    """Cut text to one line of at most width points, ending in '...' when cut."""
    text = " ".join((text or "").split())
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text.rstrip() + "..."


def _load_logo(logo: str | None) -> ImageReader | None:
    """Decode a base64 image or data URL. Unreadable logos are skipped."""
    if not logo:
        return None
    payload = logo.split(",", 1)[1] if logo.startswith("data:") else logo
    try:
        return ImageReader(BytesIO(base64.b64decode(payload, validate=True)))
    except (binascii.Error, ValueError, OSError) as e:
        logger.warning(f"Ignoring unreadable workshop logo: {e}")
        return None


class _Document:
    """Shared page furniture: header block and page breaks."""

    def __init__(self, settings: WorkshopSettings, title: str, subtitle: str):
        self.settings = settings
        self.title = title
        self.subtitle = subtitle
        self.buffer = BytesIO()
        policy = _truncate(settings.policy_terms or "", PAGE_WIDTH - 2 * MARGIN - 90)
        self.pdf = _NumberedCanvas(self.buffer, pagesize=A4, policy_line=policy)
        self.pdf.setTitle(f"{title} {subtitle}".strip())
        self.logo = _load_logo(settings.logo)
        self.y = self.draw_header()

    def draw_header(self) -> float:
        pdf = self.pdf
        top = PAGE_HEIGHT - MARGIN
        box = 60

        if self.logo is not None:
            pdf.drawImage(
                self.logo, MARGIN, top - box, width=box, height=box,
                preserveAspectRatio=True, mask="auto",
            )
        else:
            pdf.setFillColor(PANEL)
            pdf.roundRect(MARGIN, top - box, box, box, 6, fill=1, stroke=0)
            pdf.setFillColor(MUTED)
            pdf.setFont("Helvetica-Bold", 20)
            initial = (self.settings.name or "?")[:1].upper()
            pdf.drawCentredString(MARGIN + box / 2, top - box / 2 - 7, initial)

        text_x = MARGIN + box + 12
        pdf.setFillColor(PRIMARY)
        pdf.setFont("Helvetica-Bold", 13)
        pdf.drawString(text_x, top - 14, self.settings.name)
        pdf.setFont("Helvetica", 8)
        pdf.setFillColor(MUTED)
        lines = [
            self.settings.legal_name,
            f"CNPJ: {self.settings.document}" if self.settings.document else None,
            self.settings.address.one_line() or None,
            " | ".join(p for p in [self.settings.phone, self.settings.email, self.settings.website] if p) or None,
        ]
        line_y = top - 28
        for line in filter(None, lines):
            pdf.drawString(text_x, line_y, _truncate(line, 260))
            line_y -= 11

        pdf.setFillColor(ACCENT)
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawRightString(PAGE_WIDTH - MARGIN, top - 14, self.title)
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(MUTED)
        pdf.drawRightString(PAGE_WIDTH - MARGIN, top - 30, self.subtitle)

        pdf.setStrokeColor(BORDER)
        pdf.line(MARGIN, PAGE_HEIGHT - HEADER_HEIGHT - 10, PAGE_WIDTH - MARGIN, PAGE_HEIGHT - HEADER_HEIGHT - 10)
        return PAGE_HEIGHT - HEADER_HEIGHT - 30

    def ensure_space(self, needed: float) -> bool:
        """Start a new page when fewer than needed points remain. True if a break happened."""
        if self.y - needed >= FOOTER_HEIGHT + 20:
            return False
        self.pdf.showPage()
        self.y = self.draw_header()
        return True

    def section_title(self, text: str) -> None:
        self.ensure_space(24)
        self.pdf.setFillColor(PRIMARY)
        self.pdf.setFont("Helvetica-Bold", 10)
        self.pdf.drawString(MARGIN, self.y, text)
        self.y -= 16

    def finish(self, filename: str) -> RenderedDocument:
        self.pdf.showPage()
        pages = self.pdf.page_count
        self.pdf.save()
        return RenderedDocument(filename=filename, content=self.buffer.getvalue(), page_count=pages)


def _info_box(doc: _Document, x: float, width: float, heading: str, lines: list[str]) -> None:
    pdf = doc.pdf
    height = 18 + 12 * len(lines)
    pdf.setFillColor(PANEL)
    pdf.roundRect(x, doc.y - height, width, height, 6, fill=1, stroke=0)
    pdf.setFillColor(MUTED)
    pdf.setFont("Helvetica-Bold", 8)
    pdf.drawString(x + 8, doc.y - 12, heading)
    pdf.setFillColor(PRIMARY)
    pdf.setFont("Helvetica", 9)
    line_y = doc.y - 25
    for line in lines:
        pdf.drawString(x + 8, line_y, _truncate(line, width - 16, size=9))
        line_y -= 12


def render_work_order(
    order: WorkOrder,
    customer: Customer | None,
    vehicle: Vehicle | None,
    settings: WorkshopSettings,
    tz_name: str = "UTC",
) -> RenderedDocument:
    """Render one work order as a quote, service order or receipt."""
    subtitle = f"OS #{order.short_code} - {format_date(order.entry_date, tz_name)}"
    doc = _Document(settings, document_title(order.status), subtitle)
    pdf = doc.pdf

    half = (PAGE_WIDTH - 2 * MARGIN - 10) / 2
    if customer is not None:
        customer_lines = [customer.name]
        customer_lines += [p for p in [customer.phone, customer.document, customer.address] if p]
    else:
        customer_lines = [CUSTOMER_FALLBACK]
    if vehicle is not None:
        vehicle_lines = [" ".join(p for p in [vehicle.brand, vehicle.model] if p) or "Veículo"]
        vehicle_lines.append(f"Placa: {vehicle.plate}")
        vehicle_lines += [p for p in [vehicle.year, vehicle.color] if p]
    else:
        vehicle_lines = [VEHICLE_FALLBACK]

    box_lines = max(len(customer_lines), len(vehicle_lines))
    _info_box(doc, MARGIN, half, "CLIENTE", customer_lines + [""] * (box_lines - len(customer_lines)))
    _info_box(doc, MARGIN + half + 10, half, "VEÍCULO", vehicle_lines + [""] * (box_lines - len(vehicle_lines)))
    doc.y -= 18 + 12 * box_lines + 16

    pdf.setFont("Helvetica", 9)
    pdf.setFillColor(MUTED)
    pdf.drawString(MARGIN, doc.y, f"Status: {order.status.label}")
    if order.exit_date:
        pdf.drawRightString(PAGE_WIDTH - MARGIN, doc.y, f"Saída: {format_date(order.exit_date, tz_name)}")
    doc.y -= 20

    if order.description:
        doc.section_title("Descrição do Problema")
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(PRIMARY)
        for line in simpleSplit(order.description, "Helvetica", 9, PAGE_WIDTH - 2 * MARGIN):
            doc.ensure_space(12)
            pdf.drawString(MARGIN, doc.y, line)
            doc.y -= 12
        doc.y -= 8

    doc.section_title("Serviços")
    price_x = PAGE_WIDTH - MARGIN - 8

    def draw_table_header() -> None:
        pdf.setFillColor(PANEL)
        pdf.rect(MARGIN, doc.y - 6, PAGE_WIDTH - 2 * MARGIN, ROW_HEIGHT, fill=1, stroke=0)
        pdf.setFillColor(PRIMARY)
        pdf.setFont("Helvetica-Bold", 9)
        pdf.drawString(MARGIN + 8, doc.y, "Descrição")
        pdf.drawRightString(price_x, doc.y, "Valor")
        doc.y -= ROW_HEIGHT

    draw_table_header()
    pdf.setFont("Helvetica", 9)
    for item in order.services:
        if doc.ensure_space(ROW_HEIGHT):
            draw_table_header()
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(PRIMARY)
        pdf.drawString(MARGIN + 8, doc.y, _truncate(item.description or "-", 400, size=9))
        pdf.drawRightString(price_x, doc.y, format_currency(item.price))
        pdf.setStrokeColor(BORDER)
        pdf.line(MARGIN, doc.y - 6, PAGE_WIDTH - MARGIN, doc.y - 6)
        doc.y -= ROW_HEIGHT
    if not order.services:
        pdf.setFillColor(MUTED)
        pdf.drawString(MARGIN + 8, doc.y, "Nenhum serviço lançado.")
        doc.y -= ROW_HEIGHT

    totals = work_order_totals(order)
    doc.ensure_space(70)
    doc.y -= 6
    label_x = price_x - 110
    pdf.setFont("Helvetica", 9)
    pdf.setFillColor(MUTED)
    pdf.drawRightString(label_x, doc.y, "Subtotal")
    pdf.drawRightString(price_x, doc.y, format_currency(totals.subtotal))
    doc.y -= 14
    if totals.discount > ZERO:
        pdf.drawRightString(label_x, doc.y, "Desconto")
        pdf.drawRightString(price_x, doc.y, f"- {format_currency(totals.discount)}")
        doc.y -= 14
    pdf.setFont("Helvetica-Bold", 12)
    pdf.setFillColor(ACCENT)
    pdf.drawRightString(label_x, doc.y - 4, "TOTAL")
    pdf.drawRightString(price_x, doc.y - 4, format_currency(totals.total))
    doc.y -= 30

    if order.payment_method:
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(MUTED)
        pdf.drawString(MARGIN, doc.y, f"Forma de pagamento: {order.payment_method}")
        doc.y -= 16

    doc.ensure_space(70)
    doc.y -= 40
    line_width = half - 20
    pdf.setStrokeColor(PRIMARY)
    pdf.line(MARGIN, doc.y, MARGIN + line_width, doc.y)
    pdf.line(PAGE_WIDTH - MARGIN - line_width, doc.y, PAGE_WIDTH - MARGIN, doc.y)
    pdf.setFont("Helvetica", 8)
    pdf.setFillColor(MUTED)
    pdf.drawCentredString(MARGIN + line_width / 2, doc.y - 12, settings.name)
    pdf.drawCentredString(
        PAGE_WIDTH - MARGIN - line_width / 2, doc.y - 12,
        customer.name if customer else CUSTOMER_FALLBACK,
    )

    rendered = doc.finish(work_order_filename(order, customer))
    logger.info(f"Rendered {rendered.filename} ({rendered.page_count} page(s))")
    return rendered


def render_financial_report(
    report: FinancialReport,
    settings: WorkshopSettings,
    tz_name: str = "UTC",
) -> RenderedDocument:
    """Render the financial report: KPI strip and one row per order."""
    period = f"{report.start.strftime('%d/%m/%Y')} a {report.end.strftime('%d/%m/%Y')}"
    doc = _Document(settings, "RELATÓRIO FINANCEIRO", period)
    pdf = doc.pdf

    kpis = (
        ("Faturamento Total", format_currency(report.total_revenue)),
        ("Serviços Realizados", str(report.count)),
        ("Ticket Médio", format_currency(report.average_ticket)),
    )
    card_width = (PAGE_WIDTH - 2 * MARGIN - 20) / 3
    for i, (label, value) in enumerate(kpis):
        x = MARGIN + i * (card_width + 10)
        pdf.setFillColor(PANEL)
        pdf.roundRect(x, doc.y - 44, card_width, 44, 6, fill=1, stroke=0)
        pdf.setFillColor(MUTED)
        pdf.setFont("Helvetica", 8)
        pdf.drawString(x + 10, doc.y - 14, label)
        pdf.setFillColor(PRIMARY)
        pdf.setFont("Helvetica-Bold", 13)
        pdf.drawString(x + 10, doc.y - 34, value)
    doc.y -= 64

    columns = (MARGIN + 8, MARGIN + 90, MARGIN + 170)
    total_x = PAGE_WIDTH - MARGIN - 8

    def draw_table_header() -> None:
        pdf.setFillColor(PANEL)
        pdf.rect(MARGIN, doc.y - 6, PAGE_WIDTH - 2 * MARGIN, ROW_HEIGHT, fill=1, stroke=0)
        pdf.setFillColor(PRIMARY)
        pdf.setFont("Helvetica-Bold", 9)
        for x, header in zip(columns, ("Data", "OS", "Cliente")):
            pdf.drawString(x, doc.y, header)
        pdf.drawRightString(total_x, doc.y, "Valor")
        doc.y -= ROW_HEIGHT

    draw_table_header()
    for row in report.rows:
        if doc.ensure_space(ROW_HEIGHT):
            draw_table_header()
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(PRIMARY)
        pdf.drawString(columns[0], doc.y, format_date(row.revenue_date, tz_name))
        pdf.drawString(columns[1], doc.y, f"#{row.short_code}")
        pdf.drawString(columns[2], doc.y, _truncate(row.customer_name or CUSTOMER_FALLBACK, 260, size=9))
        pdf.drawRightString(total_x, doc.y, format_currency(row.total))
        pdf.setStrokeColor(BORDER)
        pdf.line(MARGIN, doc.y - 6, PAGE_WIDTH - MARGIN, doc.y - 6)
        doc.y -= ROW_HEIGHT
    if not report.rows:
        pdf.setFont("Helvetica", 9)
        pdf.setFillColor(MUTED)
        pdf.drawString(columns[0], doc.y, "Nenhum serviço finalizado no período.")
        doc.y -= ROW_HEIGHT

    filename = f"FINANCEIRO_{now_utc().strftime('%Y-%m-%d')}.pdf"
    rendered = doc.finish(filename)
    logger.info(f"Rendered {rendered.filename} ({rendered.page_count} page(s), {report.count} rows)")
    return rendered
