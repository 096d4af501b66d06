from __future__ import annotations

import math
from datetime import datetime, timezone

from fpdf import FPDF

from a11y_auditor.models import AuditResult, AuditSummary
from a11y_auditor.report import page_score

# ---------------------------------------------------------------------------
# Colour constants (RGB tuples)
# ---------------------------------------------------------------------------
GREEN = (34, 197, 94)
YELLOW = (245, 158, 11)
RED = (239, 68, 68)
BLUE = (59, 130, 246)
DARK_BG = (30, 41, 59)
LIGHT_TEXT = (226, 232, 240)
WHITE = (255, 255, 255)
GREY = (148, 163, 184)
DARK_CARD = (51, 65, 85)

LEVEL_COLORS: dict[str, tuple[int, int, int]] = {
    "error": RED,
    "warning": YELLOW,
    "hint": BLUE,
}

IMPACT_COLORS: dict[str, tuple[int, int, int]] = {
    "critical": RED,
    "serious": RED,
    "moderate": YELLOW,
    "minor": BLUE,
    "passed": GREEN,
}


def _latin1(text: str) -> str:
    # Core PDF fonts only cover Latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _score_color(score: int) -> tuple[int, int, int]:
    if score >= 80:
        return GREEN
    if score >= 50:
        return YELLOW
    return RED


def _score_label(score: int) -> str:
    if score >= 80:
        return "Good"
    if score >= 50:
        return "Needs Work"
    return "Poor"


def average_score(results: list[AuditResult]) -> int:
    scored = [page_score(r) for r in results if not r.error]
    if not scored:
        return 0
    return round(sum(scored) / len(scored))


# ===================================================================
# PDF class
# ===================================================================

class AccessibilityReportPDF(FPDF):
    def __init__(self) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.set_auto_page_break(auto=True, margin=20)

    def header(self) -> None:
        # Runs on every page, including automatic page breaks
        self.set_fill_color(*DARK_BG)
        self.rect(0, 0, self.w, self.h, "F")

    def _set_color(self, rgb: tuple[int, int, int]) -> None:
        self.set_text_color(*rgb)

    def dark_page(self) -> None:
        self.add_page()

    def ensure_space(self, needed: float) -> None:
        if self.get_y() > self.h - needed:
            self.dark_page()
            self.set_y(15)

    def heading(self, text: str) -> None:
        self.set_font("Helvetica", "B", 20)
        self._set_color(WHITE)
        self.set_xy(15, 15)
        self.cell(0, 10, text, new_x="LMARGIN", new_y="NEXT")
        self.set_draw_color(*GREY)
        self.set_line_width(0.3)
        self.line(15, 28, self.w - 15, 28)
        self.set_y(33)

    def _draw_rounded_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        r: float,
        fill_color: tuple[int, int, int],
    ) -> None:
        self.set_fill_color(*fill_color)
        self.rect(x + r, y, w - 2 * r, h, "F")
        self.rect(x, y + r, w, h - 2 * r, "F")
        for cx, cy in [
            (x + r, y + r),
            (x + w - r, y + r),
            (x + r, y + h - r),
            (x + w - r, y + h - r),
        ]:
            self.ellipse(cx - r, cy - r, 2 * r, 2 * r, "F")

    def _badge(self, x: float, y: float, label: str, color: tuple[int, int, int]) -> float:
        label = label.upper()
        self.set_font("Helvetica", "B", 6.5)
        badge_w = self.get_string_width(label) + 6
        badge_h = 5.5
        # Lighter tint of the badge colour as background
        tint = tuple(min(255, c + 140) for c in color)
        self._draw_rounded_rect(x, y, badge_w, badge_h, 1.5, tint)  # type: ignore[arg-type]
        self._set_color(color)
        self.set_xy(x, y + 0.3)
        self.cell(badge_w, badge_h, label, align="C")
        return badge_w


def _draw_arc(
    pdf: AccessibilityReportPDF,
    cx: float,
    cy: float,
    r: float,
    start_deg: float,
    end_deg: float,
) -> None:
    """Draw an arc as small line segments."""
    steps = max(30, int(abs(end_deg - start_deg) / 2))
    pts: list[tuple[float, float]] = []
    for i in range(steps + 1):
        angle = math.radians(start_deg + (end_deg - start_deg) * i / steps)
        pts.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    for i in range(len(pts) - 1):
        pdf.line(pts[i][0], pts[i][1], pts[i + 1][0], pts[i + 1][1])


# ===================================================================
# Page renderers
# ===================================================================

def _render_cover(pdf: AccessibilityReportPDF, results: list[AuditResult], summary: AuditSummary) -> None:
    pdf.dark_page()
    page_w = pdf.w

    pdf.set_font("Helvetica", "B", 30)
    pdf._set_color(WHITE)
    pdf.set_y(50)
    pdf.cell(0, 14, "Accessibility Audit Report", align="C", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 13)
    pdf._set_color(GREY)
    pdf.set_y(72)
    failed = sum(1 for r in results if r.error)
    subtitle = f"{summary.total_pages} page(s) audited"
    if failed:
        subtitle += f", {failed} failed"
    pdf.cell(0, 8, subtitle, align="C", new_x="LMARGIN", new_y="NEXT")

    now = datetime.now(timezone.utc).strftime("%B %d, %Y at %H:%M UTC")
    pdf.set_font("Helvetica", "", 10)
    pdf.set_y(84)
    pdf.cell(0, 6, f"Generated {now}", align="C", new_x="LMARGIN", new_y="NEXT")

    # Average page score gauge
    cx, cy = page_w / 2, 145
    radius = 38
    score = average_score(results)
    color = _score_color(score)

    start_angle = 135
    sweep = 270
    pdf.set_draw_color(80, 90, 110)
    pdf.set_line_width(3.5)
    _draw_arc(pdf, cx, cy, radius, start_angle, start_angle + sweep)

    fg_sweep = sweep * score / 100
    if fg_sweep > 0:
        pdf.set_draw_color(*color)
        _draw_arc(pdf, cx, cy, radius, start_angle, start_angle + fg_sweep)

    pdf.set_font("Helvetica", "B", 36)
    pdf._set_color(color)
    score_str = str(score)
    tw = pdf.get_string_width(score_str)
    pdf.set_xy(cx - tw / 2, cy - 12)
    pdf.cell(tw, 14, score_str)

    label = _score_label(score)
    pdf.set_font("Helvetica", "", 12)
    pdf._set_color(GREY)
    lw = pdf.get_string_width(label)
    pdf.set_xy(cx - lw / 2, cy + 6)
    pdf.cell(lw, 6, label)

    pdf.set_font("Helvetica", "", 9)
    caption = "average page score"
    ow = pdf.get_string_width(caption)
    pdf.set_xy(cx - ow / 2, cy + 15)
    pdf.cell(ow, 5, caption)

    pdf.set_font("Helvetica", "", 11)
    summary_parts = [
        (f"{summary.errors} Errors", RED),
        (f"{summary.warnings} Warnings", YELLOW),
        (f"{summary.pages_with_issues} Pages with issues", BLUE),
    ]
    total_w = sum(pdf.get_string_width(t) + 18 for t, _ in summary_parts)
    x = (page_w - total_w) / 2
    for text, clr in summary_parts:
        pdf._set_color(clr)
        pdf.set_xy(x, 210)
        w = pdf.get_string_width(text) + 18
        pdf.cell(w, 8, text, align="C")
        x += w


def _render_categories(pdf: AccessibilityReportPDF, summary: AuditSummary) -> None:
    pdf.dark_page()
    pdf.heading("Issues by Category")

    pdf.set_font("Helvetica", "", 10)
    pdf._set_color(LIGHT_TEXT)
    pdf.set_x(15)
    pdf.cell(
        0, 6,
        f"Total issues: {summary.total_issues}  |  {summary.errors} errors  |  {summary.warnings} warnings",
        new_x="LMARGIN", new_y="NEXT",
    )

    if not summary.categories:
        pdf.set_font("Helvetica", "I", 10)
        pdf._set_color(GREEN)
        pdf.set_xy(15, 46)
        pdf.cell(0, 6, "No accessibility violations found.", new_x="LMARGIN", new_y="NEXT")
        return

    bar_x = 70
    bar_max_w = pdf.w - bar_x - 30
    y = 50

    for cat in summary.categories.values():
        pdf.set_font("Helvetica", "", 9)
        pdf._set_color(LIGHT_TEXT)
        pdf.set_xy(15, y)
        pdf.cell(bar_x - 17, 6, _latin1(cat.name), align="R")

        pdf.set_fill_color(80, 90, 110)
        pdf.rect(bar_x, y + 1, bar_max_w, 4, "F")

        fill_w = bar_max_w * cat.percentage / 100
        if fill_w > 0:
            pdf.set_fill_color(*BLUE)
            pdf.rect(bar_x, y + 1, fill_w, 4, "F")

        pdf.set_font("Helvetica", "B", 9)
        pdf._set_color(WHITE)
        pdf.set_xy(bar_x + bar_max_w + 2, y)
        pdf.cell(12, 6, str(cat.count))

        pdf.set_font("Helvetica", "", 7)
        pdf._set_color(GREY)
        pdf.set_xy(bar_x + bar_max_w + 14, y + 0.5)
        pdf.cell(12, 5, f"{cat.percentage}%")

        y += 10
        if y > pdf.h - 25:
            pdf.dark_page()
            y = 20


def _render_top_issues(pdf: AccessibilityReportPDF, summary: AuditSummary) -> None:
    pdf.dark_page()
    pdf.heading("Top Recurring Issues")

    if not summary.top_issues:
        pdf.set_font("Helvetica", "", 10)
        pdf._set_color(GREEN)
        pdf.set_x(15)
        pdf.cell(0, 6, "No recurring issues.", new_x="LMARGIN", new_y="NEXT")
        return

    for rank, issue in enumerate(summary.top_issues, start=1):
        pdf.ensure_space(25)
        iy = pdf.get_y()
        badge_w = pdf._badge(15, iy + 0.5, issue.impact, IMPACT_COLORS.get(issue.impact, GREY))

        pdf.set_font("Helvetica", "B", 9)
        pdf._set_color(WHITE)
        text_x = 15 + badge_w + 3
        pdf.set_xy(text_x, iy)
        pdf.multi_cell(pdf.w - text_x - 15, 5, _latin1(f"{rank}. {issue.title or issue.id}"))

        pdf.set_font("Helvetica", "", 8)
        pdf._set_color(GREY)
        pdf.set_x(text_x)
        pdf.cell(
            0, 5,
            _latin1(f"{issue.count} occurrence(s) on {issue.page_count} page(s)  |  {issue.category}  |  {issue.id}"),
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.set_y(pdf.get_y() + 3)


def _render_page_detail(pdf: AccessibilityReportPDF, result: AuditResult) -> None:
    pdf.ensure_space(40)
    y = pdf.get_y()

    pdf.set_fill_color(*DARK_CARD)
    pdf.rect(15, y, pdf.w - 30, 14, "F")

    pdf.set_font("Helvetica", "B", 10)
    pdf._set_color(WHITE)
    pdf.set_xy(19, y + 1.5)
    pdf.cell(pdf.w - 70, 6, _latin1(result.url))

    if result.error:
        pdf.set_font("Helvetica", "", 8)
        pdf._set_color(RED)
        pdf.set_xy(19, y + 7.5)
        pdf.cell(pdf.w - 50, 5, _latin1(f"Audit failed: {result.error}"))
        pdf.set_y(y + 20)
        return

    score = page_score(result)
    pdf.set_font("Helvetica", "B", 14)
    pdf._set_color(_score_color(score))
    pdf.set_xy(pdf.w - 45, y + 3)
    pdf.cell(25, 8, str(score), align="R")

    s = result.summary
    pdf.set_font("Helvetica", "", 8)
    pdf._set_color(GREY)
    pdf.set_xy(19, y + 7.5)
    pdf.cell(
        pdf.w - 70, 5,
        f"{s.critical_issues} critical  |  {s.serious_issues} serious  |  "
        f"{s.moderate_issues} moderate  |  {s.total_issues} total",
    )
    pdf.set_y(y + 17)

    issues = result.issues.all()
    if not issues:
        pdf.set_font("Helvetica", "I", 9)
        pdf._set_color(GREEN)
        pdf.set_x(17)
        pdf.cell(0, 6, "No issues found.", new_x="LMARGIN", new_y="NEXT")
    for issue in issues:
        pdf.ensure_space(20)
        iy = pdf.get_y()
        badge_w = pdf._badge(17, iy + 0.5, issue.level, LEVEL_COLORS.get(issue.level, GREY))

        pdf.set_font("Helvetica", "", 8)
        pdf._set_color(LIGHT_TEXT)
        text_x = 17 + badge_w + 3
        text_w = pdf.w - text_x - 17
        pdf.set_xy(text_x, iy)
        line = issue.title or issue.id
        if issue.selector:
            line += f"  ({issue.selector})"
        pdf.multi_cell(text_w, 4.5, _latin1(line))
        if pdf.get_y() < iy + 6:
            pdf.set_y(iy + 6)
        pdf.set_y(pdf.get_y() + 1)

    pdf.set_y(pdf.get_y() + 6)


# ===================================================================
# Public API
# ===================================================================

def generate_pdf(results: list[AuditResult], summary: AuditSummary) -> bytes:
    """Render the audit summary and per-page results as a PDF and return raw bytes."""
    pdf = AccessibilityReportPDF()

    _render_cover(pdf, results, summary)
    _render_categories(pdf, summary)
    _render_top_issues(pdf, summary)

    pdf.dark_page()
    pdf.heading("Page Details")
    for result in results:
        _render_page_detail(pdf, result)

    return bytes(pdf.output())
