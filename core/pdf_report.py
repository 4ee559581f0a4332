from datetime import datetime, timezone
from io import BytesIO
from textwrap import wrap

from reportlab.graphics import renderPDF
from reportlab.graphics.charts.barcharts import VerticalBarChart
from reportlab.graphics.charts.spider import SpiderChart
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from core.scoring import overall_score, score_breakdown, verdict_tone
from models import AnalysisResult, Project, ProjectStatus


PAGE_WIDTH, PAGE_HEIGHT = A4

MARGIN_X = 24 * mm
MARGIN_Y = 28 * mm
CONTENT_WIDTH = PAGE_WIDTH - (2 * MARGIN_X)

GRID = 16  # baseline spacing
CHART_HEIGHT = 170

COLOR_PRIMARY = colors.HexColor("#0F172A")
COLOR_ACCENT = colors.HexColor("#6366F1")
COLOR_REVENUE = colors.HexColor("#0EA5E9")
COLOR_PROFIT = colors.HexColor("#10B981")
COLOR_TEXT = colors.HexColor("#1E293B")
COLOR_MUTED = colors.HexColor("#64748B")
COLOR_BORDER = colors.HexColor("#CBD5E1")

TONE_COLORS = {
    "positive": colors.HexColor("#15803D"),
    "caution": colors.HexColor("#B45309"),
    "negative": colors.HexColor("#B91C1C"),
}
SEVERITY_COLORS = {
    "High": colors.HexColor("#B91C1C"),
    "Medium": colors.HexColor("#B45309"),
    "Low": colors.HexColor("#15803D"),
}

BULLET_GLYPH = "•"


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


class PdfReportBuilder:
    """Keeps a single canvas alive while laying out one investor report."""

    def __init__(self, project: Project):
        if project.status != ProjectStatus.COMPLETED or project.analysis is None:
            raise ValueError(f"Project {project.id} has no completed analysis to export")
        self.project = project
        self.analysis: AnalysisResult = project.analysis
        self.buffer = BytesIO()
        self.pdf = canvas.Canvas(self.buffer, pagesize=A4)
        self.pdf.setTitle(f"{project.submission.title} - Investor Report")

    # -- spacing helpers -------------------------------------------------
    def _ensure_space(self, y: float, needed: float) -> float:
        if y - needed <= MARGIN_Y:
            self._draw_footer()
            self.pdf.showPage()
            self.pdf.setFont("Helvetica", 10)
            return PAGE_HEIGHT - MARGIN_Y
        return y

    def _wrap_lines(self, text: str, width: float, size: int) -> list[str]:
        if not text:
            return []
        max_chars = max(10, int(width // (size * 0.51)))
        lines: list[str] = []
        for paragraph in text.split("\n"):
            lines.extend(wrap(paragraph, max_chars) or [""])
        return lines

    def _wrap_text(self, text: str, x: float, y: float, width: float, size: int = 10,
                   line_height: int = GRID, font: str = "Helvetica", color=COLOR_TEXT) -> float:
        if not text:
            return y

        for line in self._wrap_lines(text, width, size):
            y = self._ensure_space(y, line_height)
            y -= line_height
            self.pdf.setFont(font, size)
            self.pdf.setFillColor(color)
            self.pdf.drawString(x, y, line)

        return y

    def _section(self, title: str, y: float) -> float:
        y -= GRID
        y = self._ensure_space(y, GRID * 3)

        self.pdf.setFont("Helvetica-Bold", 13)
        self.pdf.setFillColor(COLOR_PRIMARY)
        self.pdf.drawString(MARGIN_X, y, title.upper())

        self.pdf.setStrokeColor(COLOR_BORDER)
        self.pdf.setLineWidth(0.7)
        self.pdf.line(MARGIN_X, y - 4, PAGE_WIDTH - MARGIN_X, y - 4)

        return y - 8

    def _bullet_list(self, items, x: float, y: float, width: float) -> float:
        bullet_indent = 12

        for item in items:
            y = self._ensure_space(y, GRID)
            self.pdf.setFont("Helvetica", 10)
            self.pdf.setFillColor(COLOR_TEXT)
            self.pdf.drawString(x, y - GRID, BULLET_GLYPH)
            y = self._wrap_text(item, x + bullet_indent, y, width - bullet_indent)
            y -= 4

        return y

    def _draw_chart(self, drawing: Drawing, y: float) -> float:
        y = self._ensure_space(y, drawing.height + 4)
        renderPDF.draw(drawing, self.pdf, MARGIN_X, y - drawing.height)
        return y - drawing.height - 4

    # -- blocks ----------------------------------------------------------
    def _draw_header(self) -> None:
        submission = self.project.submission
        self.pdf.setFont("Helvetica-Bold", 24)
        self.pdf.setFillColor(COLOR_PRIMARY)
        self.pdf.drawString(MARGIN_X, PAGE_HEIGHT - 48, submission.title[:48])

        self.pdf.setFont("Helvetica", 11)
        self.pdf.setFillColor(COLOR_MUTED)
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        subtitle = (
            f"{submission.industry} {BULLET_GLYPH} {submission.location} "
            f"{BULLET_GLYPH} Generated {timestamp}"
        )
        self.pdf.drawString(MARGIN_X, PAGE_HEIGHT - 70, subtitle)

    def _draw_footer(self) -> None:
        self.pdf.setStrokeColor(COLOR_BORDER)
        self.pdf.line(MARGIN_X, MARGIN_Y - 6, PAGE_WIDTH - MARGIN_X, MARGIN_Y - 6)

        self.pdf.setFont("Helvetica", 8)
        self.pdf.setFillColor(COLOR_MUTED)
        footer = f"Founder Validator {BULLET_GLYPH} AI-generated preliminary assessment"
        self.pdf.drawCentredString(PAGE_WIDTH / 2, MARGIN_Y - 18, footer)

    def _verdict(self, y: float) -> float:
        verdict = self.analysis.investment_verdict
        tone = verdict_tone(verdict)
        y = self._wrap_text(
            f"Verdict: {verdict}", MARGIN_X, y, CONTENT_WIDTH,
            size=12, font="Helvetica-Bold", color=TONE_COLORS[tone],
        )
        score = overall_score(self.analysis)
        return self._wrap_text(f"Overall score: {score}/100", MARGIN_X, y, CONTENT_WIDTH, color=COLOR_MUTED)

    def _score_chart(self, y: float) -> float:
        breakdown = score_breakdown(self.analysis.scores)
        drawing = Drawing(CONTENT_WIDTH, CHART_HEIGHT)
        chart = SpiderChart()
        chart.x = (CONTENT_WIDTH - CHART_HEIGHT) / 2
        chart.y = 10
        chart.width = CHART_HEIGHT - 20
        chart.height = CHART_HEIGHT - 20
        # second strand is the 100 mark so every report shares the same scale
        chart.data = [list(breakdown.values()), [100] * len(breakdown)]
        chart.labels = [f"{label} ({value})" for label, value in breakdown.items()]
        chart.strands[0].strokeColor = COLOR_ACCENT
        chart.strands[0].fillColor = colors.HexColor("#C7D2FE")
        chart.strands[0].strokeWidth = 2
        chart.strands[1].strokeColor = COLOR_BORDER
        chart.strands[1].fillColor = None
        chart.strands[1].strokeWidth = 0.5
        drawing.add(chart)
        return self._draw_chart(drawing, y)

    def _financial_chart(self, y: float) -> float:
        financials = self.analysis.financials
        if not financials:
            return self._wrap_text("No financial projection provided.", MARGIN_X, y, CONTENT_WIDTH)

        drawing = Drawing(CONTENT_WIDTH, CHART_HEIGHT)
        chart = VerticalBarChart()
        chart.x = 50
        chart.y = 20
        chart.width = CONTENT_WIDTH - 70
        chart.height = CHART_HEIGHT - 35
        chart.data = [
            [f.revenue for f in financials],
            [f.profit for f in financials],
        ]
        chart.categoryAxis.categoryNames = [f.year for f in financials]
        chart.categoryAxis.labels.fontSize = 8
        chart.valueAxis.labels.fontSize = 8
        chart.valueAxis.labelTextFormat = lambda v: f"${v / 1000:,.0f}k"
        chart.bars[0].fillColor = COLOR_REVENUE
        chart.bars[1].fillColor = COLOR_PROFIT
        chart.bars.strokeColor = None
        drawing.add(chart)
        return self._draw_chart(drawing, y)

    def _financial_table(self, y: float) -> float:
        columns = ["Year", "Revenue", "Cost", "Profit"]
        col_w = CONTENT_WIDTH / len(columns)
        row_h = GRID + 2

        rows = [columns] + [
            [f.year, _money(f.revenue), _money(f.cost), _money(f.profit)]
            for f in self.analysis.financials
        ]
        for index, row in enumerate(rows):
            y = self._ensure_space(y, row_h)
            self.pdf.setStrokeColor(COLOR_BORDER)
            self.pdf.setLineWidth(0.6)
            self.pdf.line(MARGIN_X, y - row_h, PAGE_WIDTH - MARGIN_X, y - row_h)
            self.pdf.setFont("Helvetica-Bold" if index == 0 else "Helvetica", 10)
            for col, cell in enumerate(row):
                color = COLOR_TEXT
                if index > 0 and col == 3 and cell.startswith("-"):
                    color = TONE_COLORS["negative"]
                self.pdf.setFillColor(COLOR_MUTED if index == 0 else color)
                self.pdf.drawString(MARGIN_X + col * col_w + 4, y - row_h + 5, cell)
            y -= row_h

        return y

    def _legal_steps(self, y: float) -> float:
        steps = self.analysis.legal_steps
        if not steps:
            return self._wrap_text("No legal steps identified.", MARGIN_X, y, CONTENT_WIDTH)
        for number, step in enumerate(steps, start=1):
            y = self._wrap_text(f"{number}. {step.title}", MARGIN_X, y, CONTENT_WIDTH, font="Helvetica-Bold")
            y = self._wrap_text(step.description, MARGIN_X + 14, y, CONTENT_WIDTH - 14, color=COLOR_MUTED)
            y -= 4
        return y

    def _risks(self, y: float) -> float:
        risks = self.analysis.risks
        if not risks:
            return self._wrap_text("No risks identified.", MARGIN_X, y, CONTENT_WIDTH)
        for item in risks:
            severity = item.severity.value
            y = self._wrap_text(
                f"[{severity.upper()}] {item.risk}", MARGIN_X, y, CONTENT_WIDTH,
                font="Helvetica-Bold", color=SEVERITY_COLORS[severity],
            )
            y = self._wrap_text(f"Mitigation: {item.mitigation}", MARGIN_X + 14, y, CONTENT_WIDTH - 14)
            y -= 4
        return y

    # -- public API ------------------------------------------------------
    def build(self) -> bytes:
        analysis = self.analysis
        y = PAGE_HEIGHT - 90

        self._draw_header()

        y = self._section("Executive Summary", y)
        y = self._wrap_text(analysis.executive_summary, MARGIN_X, y, CONTENT_WIDTH, size=11)
        y -= 6
        y = self._verdict(y)

        y = self._section("Scores", y)
        y = self._score_chart(y)

        y = self._section("Market Analysis", y)
        y = self._wrap_text(analysis.market_analysis, MARGIN_X, y, CONTENT_WIDTH)
        y -= 6
        y = self._wrap_text("Competitors", MARGIN_X, y, CONTENT_WIDTH, font="Helvetica-Bold")
        y = self._bullet_list(analysis.competitors or ["No competitors identified."], MARGIN_X, y, CONTENT_WIDTH)

        y = self._section("Financial Projection", y)
        y = self._financial_chart(y)
        y = self._financial_table(y)

        y = self._section("Legal Roadmap", y)
        y = self._legal_steps(y)

        y = self._section("Risk Assessment", y)
        y = self._risks(y)

        y = self._section("Recommended Stack", y)
        y = self._wrap_text(", ".join(analysis.recommended_stack) or "-", MARGIN_X, y, CONTENT_WIDTH)

        y = self._section("Hiring Plan", y)
        self._bullet_list(analysis.hiring_plan or ["-"], MARGIN_X, y, CONTENT_WIDTH)

        self._draw_footer()

        self.pdf.save()
        self.buffer.seek(0)
        return self.buffer.getvalue()


def build_pdf_report(project: Project) -> bytes:
    return PdfReportBuilder(project).build()
