"""
PDF report, CSV export and reusable chart rendering for the PAYE
take-home calculator.

Provides:
  - Four-page PDF report (generate_pdf)
  - Base64-encoded chart images for web embedding (get_web_charts)
  - CSV export of the monthly breakdown and band tables (breakdown_to_csv)
"""

from __future__ import annotations

import base64
import csv
import io
from decimal import Decimal
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.ticker import FuncFormatter
import numpy as np

import config as cfg
import tax
from calculator import TaxCalculationResult, band_to_dict, period_to_dict
from tax_code import describe_tax_code

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
TEXT2 = "#cbd5e1"
INDIGO = "#818cf8"
EMERALD = "#34d399"
AMBER = "#fbbf24"
RED = "#f87171"
SLATE = "#94a3b8"
BORDER = "#1e293b"

A4W, A4H = 8.27, 11.69
WEB_W, WEB_H = 10, 7

# Salary sweep for the effective-rate chart
CURVE_POINTS = 241
CURVE_MIN_MAX = 150_000


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _gbp_fmt(x, _):
    if abs(x) >= 1e6:
        return f"£{x / 1e6:.1f}M"
    if abs(x) >= 1e3:
        return f"£{x / 1e3:.0f}k"
    return f"£{x:.0f}"


def _pct_fmt(x, _):
    return f"{x:.0f}%"


GBP_FMT = FuncFormatter(_gbp_fmt)
PCT_FMT = FuncFormatter(_pct_fmt)


def _money(value: Decimal) -> str:
    if value.is_infinite():
        return "no limit"
    return f"£{value:,.2f}"


# ═══════════════════════════════════════════════════════════════════
# Style helpers
# ═══════════════════════════════════════════════════════════════════

def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, alpha=0.15, color=SLATE)


def _legend(ax, loc="upper left"):
    ax.legend(loc=loc, fontsize=8, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)


# ═══════════════════════════════════════════════════════════════════
# Page 1: Summary (text only, dark background)
# ═══════════════════════════════════════════════════════════════════

def _page_summary(result: TaxCalculationResult) -> plt.Figure:
    s = result.annual_summary
    fig = plt.figure(figsize=(A4W, A4H))
    fig.patch.set_facecolor(BG)

    fig.text(0.50, 0.93, "PAYE Take-Home Pay",
             ha="center", fontsize=18, color=TEXT, fontweight="bold")
    fig.text(0.50, 0.91, f"Tax year {result.tax_year}  |  Tax code {result.tax_code.code}",
             ha="center", fontsize=11, color=TEXT2)

    y = 0.86
    fig.text(0.08, y, "Your Tax Code", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.028
    basis = "Cumulative" if result.is_cumulative else "Week1/Month1 (non-cumulative)"
    for line in (describe_tax_code(result.tax_code.code), f"Basis: {basis}"):
        fig.text(0.10, y, line, fontsize=9.5, color=TEXT2)
        y -= 0.024

    y -= 0.025
    fig.text(0.08, y, "Annual Summary", fontsize=13, color=INDIGO, fontweight="bold")
    y -= 0.028
    rows = [
        ("Gross salary", _money(s.gross)),
        ("Tax-free allowance", _money(s.personal_allowance)),
        ("Income tax", _money(s.total_income_tax)),
        ("National Insurance", _money(s.total_ni)),
        ("Net annual pay", _money(s.net_annual)),
        ("Net monthly pay", _money(s.net_monthly)),
        ("Effective deduction rate", f"{s.effective_rate:.1f}%"),
    ]
    for label, value in rows:
        fig.text(0.10, y, label, fontsize=9.5, color=TEXT2)
        fig.text(0.60, y, value, fontsize=9.5, color=TEXT, ha="right")
        y -= 0.024

    for title, colour, bands in (
        ("Income Tax Bands", EMERALD, result.income_tax_bands),
        ("National Insurance", AMBER, result.ni_bands),
    ):
        y -= 0.025
        fig.text(0.08, y, title, fontsize=13, color=colour, fontweight="bold")
        y -= 0.028
        for b in bands:
            fig.text(0.10, y, f"{b.label} ({b.rate.normalize():f}%)", fontsize=9, color=TEXT2)
            fig.text(0.60, y, _money(b.amount), fontsize=9, color=TEXT2, ha="right")
            fig.text(0.85, y, _money(b.tax), fontsize=9, color=TEXT, ha="right")
            y -= 0.022

    fig.text(0.50, 0.03,
             "Estimates only. Your payslip may differ by pennies because of "
             "HMRC rounding tables.",
             ha="center", fontsize=8, color=SLATE, style="italic")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Page 2: Band breakdown (income tax and NI)
# ═══════════════════════════════════════════════════════════════════

def _chart_bands(result: TaxCalculationResult, figsize=(A4W, A4H)) -> plt.Figure:
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=figsize, constrained_layout=True)
    _style(fig, ax1, ax2)

    for ax, bands, colour, title in (
        (ax1, result.income_tax_bands, INDIGO, "Income Tax by Band"),
        (ax2, result.ni_bands, AMBER, "National Insurance by Band"),
    ):
        labels = [f"{b.label}\n{b.rate.normalize():f}%" for b in bands]
        amounts = np.array([float(b.amount) for b in bands])
        taxes = np.array([float(b.tax) for b in bands])
        y = np.arange(len(bands))

        ax.barh(y, amounts, 0.6, color=SLATE, alpha=0.45, label="Income in band")
        ax.barh(y, taxes, 0.6, color=colour, label="Tax")
        for i, t in enumerate(taxes):
            if t > 0:
                ax.annotate(f"£{t:,.0f}", (t, i), xytext=(4, 0),
                            textcoords="offset points", va="center",
                            fontsize=7, color=colour)

        ax.set_yticks(y)
        ax.set_yticklabels(labels, fontsize=7.5)
        ax.invert_yaxis()
        ax.xaxis.set_major_formatter(GBP_FMT)
        ax.set_title(title, fontsize=11, pad=10)
        _legend(ax, loc="lower right")

    return fig


# ═══════════════════════════════════════════════════════════════════
# Page 3: Monthly breakdown (stacked bars)
# ═══════════════════════════════════════════════════════════════════

def _chart_monthly(result: TaxCalculationResult, figsize=(A4W, A4H * 0.6)) -> plt.Figure:
    months = result.monthly_breakdown
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    x = np.arange(len(months))
    net = np.array([float(p.net) for p in months])
    it = np.array([float(p.income_tax) for p in months])
    ni = np.array([float(p.national_insurance) for p in months])

    # Negative net (large K codes) is drawn below the axis
    ax.bar(x, net, 0.65, color=EMERALD, label="Net pay")
    base = np.maximum(net, 0)
    ax.bar(x, it, 0.65, bottom=base, color=INDIGO, label="Income tax")
    ax.bar(x, ni, 0.65, bottom=base + it, color=AMBER, label="National Insurance")

    ax.set_xticks(x)
    ax.set_xticklabels([p.label[:3] for p in months], fontsize=8)
    ax.yaxis.set_major_formatter(GBP_FMT)
    ax.set_ylabel("Per month")
    basis = "cumulative" if result.is_cumulative else "Week1/Month1"
    ax.set_title(f"Monthly Breakdown ({basis} basis)", fontsize=11, pad=10)
    _legend(ax, loc="lower right")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Page 4: Effective and marginal rate across salaries
# ═══════════════════════════════════════════════════════════════════

def salary_grid(salary: float, points: int = CURVE_POINTS) -> np.ndarray:
    """Salaries from 0 to twice *salary* (at least up to the taper's end)."""
    top = max(2 * float(salary), CURVE_MIN_MAX)
    return np.linspace(0.0, top, points)


def _chart_effective_rate(result: TaxCalculationResult, figsize=(A4W, A4H * 0.6)) -> plt.Figure:
    config = cfg.get_tax_year(result.tax_year)
    salary = float(result.annual_summary.gross)
    curve = tax.effective_rate_curve(salary_grid(salary), result.tax_code, config)

    sal = curve["salary"]
    deductions = curve["income_tax"] + curve["ni"]
    # Marginal rate from the slope of total deductions
    marginal = np.gradient(deductions, sal) * 100

    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)
    ax.plot(sal, curve["effective_pct"], color=INDIGO, linewidth=2.2,
            label="Effective rate", solid_capstyle="round")
    ax.plot(sal, marginal, color=AMBER, linewidth=1.2, linestyle="--",
            alpha=0.8, label="Marginal rate")

    threshold = float(config.pa_taper_threshold)
    taper_end = threshold + 2 * float(config.personal_allowance)
    if sal[-1] > threshold:
        ax.axvspan(threshold, min(taper_end, sal[-1]), alpha=0.08, color=RED)
        ax.annotate(f"PA taper (>£{threshold / 1000:.0f}k)",
                    xy=(threshold, 5), fontsize=7, color=RED, alpha=0.8)

    you = float(result.annual_summary.effective_rate)
    ax.plot(salary, you, marker="*", markersize=14, color=EMERALD, zorder=10,
            markeredgecolor="white", markeredgewidth=0.5)
    ax.annotate("You", (salary, you), textcoords="offset points", xytext=(6, 6),
                fontsize=8, color=EMERALD, fontweight="bold")

    ax.set_xlim(0, sal[-1])
    ax.set_ylim(0, 80)
    ax.xaxis.set_major_formatter(GBP_FMT)
    ax.yaxis.set_major_formatter(PCT_FMT)
    ax.set_xlabel("Annual salary")
    ax.set_ylabel("Income tax + NI")
    ax.set_title(f"Deduction Rates for Tax Code {result.tax_code.code}", fontsize=11, pad=10)
    _legend(ax)
    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=150, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def generate_pdf(result: TaxCalculationResult, path: Optional[str] = None) -> str:
    """Generate the full PDF report. Returns the file path."""
    path = path or cfg.load_settings().report_path
    pages = [
        _page_summary(result),
        _chart_bands(result),
        _chart_monthly(result),
        _chart_effective_rate(result),
    ]
    try:
        with PdfPages(path) as pdf:
            for fig in pages:
                pdf.savefig(fig, facecolor=fig.get_facecolor())
    finally:
        for fig in pages:
            plt.close(fig)
    return path


def get_web_charts(result: TaxCalculationResult) -> List[str]:
    """Return base64-encoded PNG chart images for web embedding.

    Returns 3 charts:
      [0] Monthly Breakdown
      [1] Income Tax and NI by band
      [2] Effective / marginal rate curve
    """
    chart_figs = [
        _chart_monthly(result, figsize=(WEB_W, WEB_H - 1)),
        _chart_bands(result, figsize=(WEB_W, WEB_H + 1)),
        _chart_effective_rate(result, figsize=(WEB_W, WEB_H - 1)),
    ]
    images = [figure_to_base64(f) for f in chart_figs]
    for f in chart_figs:
        plt.close(f)
    return images


def breakdown_to_csv(result: TaxCalculationResult, places: int = 2) -> str:
    """Monthly breakdown followed by the band tables, as CSV text."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    writer.writerow(["Tax year", result.tax_year])
    writer.writerow(["Tax code", result.tax_code.code])
    writer.writerow([])

    rows = [period_to_dict(p, places) for p in result.monthly_breakdown]
    writer.writerow(["Month", "Gross", "Tax-free", "Taxable", "Income tax", "NI", "Net pay"])
    for r in rows:
        writer.writerow([r["month"], r["gross"], r["taxFree"], r["taxable"],
                         r["incomeTax"], r["nationalInsurance"], r["netPay"]])

    for title, bands in (("Income tax band", result.income_tax_bands),
                         ("NI band", result.ni_bands)):
        writer.writerow([])
        writer.writerow([title, "Rate", "From", "To", "Amount", "Tax"])
        for b in (band_to_dict(b, places) for b in bands):
            writer.writerow([b["band"], b["rate"], b["from"], b["to"], b["amount"], b["tax"]])

    return buf.getvalue()
