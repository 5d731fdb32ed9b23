"""
Flask web application for the UK PAYE take-home pay calculator.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.

Besides the HTML form there is a small JSON API:

  POST /api/calculate      salary + tax code -> full breakdown
  POST /api/compare        several scenarios side by side
  POST /api/car-benefit    company car benefit-in-kind
  GET  /api/tax-code/<c>   parsed tax code and its description
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from flask import Flask, Response, jsonify, render_template_string, request, send_file

import config as cfg
from calculator import (
    Scenario,
    calculate_tax_details,
    compare_scenarios,
    convert_to_yearly,
    year_to_date,
)
from car_benefit import FUEL_TYPES, CarBenefitInputs, calculate_car_benefit
from cli import CalculationInputs, compute_display_data, fmt, pct
from periods import NonCumulativeBasis, Period
from precision import DEFAULT_ARITHMETIC
from tax_code import describe_tax_code, normalise, parse_tax_code
from validation import (
    parse_amount,
    validate_percentage,
    validate_period_number,
    validate_salary,
    validate_tax_code,
)
import report

logger = logging.getLogger(__name__)

app = Flask(__name__)

app.config["PAYE_SETTINGS"] = cfg.load_settings()


def _settings() -> cfg.Settings:
    return app.config["PAYE_SETTINGS"]

# ═══════════════════════════════════════════════════════════════════
# Form parsing
# ═══════════════════════════════════════════════════════════════════

def _yes(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("yes", "true", "1", "on")


def _tax_year(raw: Optional[str]) -> str:
    year = raw or _settings().tax_year
    if year not in cfg.TAX_YEARS:
        raise ValueError(f"Unknown tax year {year!r}")
    return year


def _parse_car(form: Mapping[str, Any], tax_year: str) -> Optional[CarBenefitInputs]:
    if not _yes(form.get("car")):
        return None
    return CarBenefitInputs(
        list_price=parse_amount(form.get("list_price") or "0"),
        co2_emissions=int(form.get("co2") or 0),
        fuel_type=form.get("fuel_type") or "petrol",
        rde2_compliant=_yes(form.get("rde2"), default=True),
        electric_range=int(form.get("electric_range") or 0),
        capital_contribution=parse_amount(form.get("contribution") or "0"),
        private_fuel_provided=_yes(form.get("private_fuel")),
        tax_year=tax_year,
    )


def parse_form(form: Mapping[str, Any]) -> CalculationInputs:
    """Parse the HTML form (or query string) into CalculationInputs.

    Raises
    ------
    ValueError
        With a user-facing message when any field is invalid.
    """
    pay_period = form.get("pay_period") or "yearly"
    hours = parse_amount(form.get("hours") or "40")
    salary = convert_to_yearly(parse_amount(form.get("salary") or "0"), pay_period, hours)
    validate_salary(salary).raise_for_error()

    code = form.get("tax_code") or cfg.DEFAULT_TAX_CODE
    validate_tax_code(code).raise_for_error()

    period = None
    kind = form.get("period_type") or "none"
    if kind != "none":
        number = int(form.get("period_number") or 0)
        validate_period_number(number, kind).raise_for_error()
        period = Period(kind, number)

    tax_year = _tax_year(form.get("tax_year"))
    return CalculationInputs(
        salary=salary,
        tax_code=normalise(code),
        is_cumulative=_yes(form.get("cumulative"), default=True),
        period=period,
        tax_year=tax_year,
        car=_parse_car(form, tax_year),
    )


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

HTML_TEMPLATE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>UK PAYE Take-Home Pay Calculator</title>
<style>
  *{margin:0;padding:0;box-sizing:border-box}
  :root{
    --bg-deep:#050816;
    --bg-surface:rgba(15,23,42,0.55);
    --bg-input:rgba(8,11,22,0.85);
    --border-subtle:rgba(99,102,241,0.1);
    --text-primary:#f1f5f9;
    --text-secondary:#94a3b8;
    --text-muted:#64748b;
    --indigo:#818cf8;
    --emerald:#34d399;
    --amber:#fbbf24;
    --red:#f87171;
    --radius-lg:16px;
    --radius-md:10px;
  }
  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:system-ui,-apple-system,sans-serif;line-height:1.6;
  }
  .container{max-width:1140px;margin:0 auto;padding:2rem 1.5rem}
  .hero{text-align:center;padding:1.5rem 0 2rem}
  .hero h1{font-size:2rem;font-weight:800;letter-spacing:-.03em}
  .hero-sub{color:var(--text-secondary);margin-top:.6rem;font-size:.92rem}
  .card{
    background:var(--bg-surface);border:1px solid var(--border-subtle);
    border-radius:var(--radius-lg);padding:1.6rem;margin-bottom:1.4rem;
  }
  h2{font-size:1.1rem;font-weight:700;margin-bottom:1rem}
  .form-grid{display:grid;grid-template-columns:repeat(3,1fr);gap:1rem 1.2rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.78rem;color:var(--text-secondary);margin-bottom:.35rem;font-weight:500}
  .form-group input,.form-group select{
    background:var(--bg-input);border:1px solid rgba(51,65,85,.4);border-radius:var(--radius-md);
    padding:.6rem .8rem;color:var(--text-primary);font-size:.88rem;
  }
  .btn{
    display:inline-flex;align-items:center;gap:.5rem;border:none;border-radius:var(--radius-md);
    padding:.75rem 1.5rem;font-weight:600;font-size:.9rem;cursor:pointer;text-decoration:none;color:#fff;
  }
  .btn-primary{background:linear-gradient(135deg,#6366f1,#8b5cf6)}
  .btn-success{background:linear-gradient(135deg,#10b981,#059669)}
  .stat-row{display:flex;justify-content:space-between;padding:.5rem 0;border-bottom:1px solid rgba(51,65,85,.2)}
  .stat-row:last-child{border-bottom:none}
  .stat-label{color:var(--text-secondary);font-size:.86rem}
  .stat-value{font-weight:600;font-size:.86rem;font-variant-numeric:tabular-nums}
  .tag-amber{color:var(--amber)}
  .tag-net{color:var(--emerald)}
  .error{
    background:rgba(248,113,113,.08);border:1px solid rgba(248,113,113,.3);color:var(--red);
    border-radius:var(--radius-md);padding:.8rem 1rem;margin-bottom:1.4rem;font-size:.9rem;
  }
  .desc{color:var(--text-secondary);font-size:.88rem;margin-bottom:1rem}
  .table-wrap{overflow-x:auto;border-radius:var(--radius-md);border:1px solid rgba(51,65,85,.25)}
  .tbl{width:100%;border-collapse:collapse;font-size:.84rem}
  .tbl th{
    background:rgba(15,23,42,.8);color:var(--text-secondary);font-weight:600;text-align:right;
    padding:.6rem .8rem;font-size:.75rem;text-transform:uppercase;letter-spacing:.04em;
  }
  .tbl td{padding:.55rem .8rem;text-align:right;border-bottom:1px solid rgba(51,65,85,.15);font-variant-numeric:tabular-nums}
  .tbl th:first-child,.tbl td:first-child{text-align:left}
  .tbl tfoot td{font-weight:700}
  .chart-img{width:100%;border-radius:var(--radius-md);margin-top:.5rem}
  .dl-section{display:flex;gap:1rem;justify-content:center;margin:2rem 0}
  .footer{text-align:center;color:var(--text-muted);font-size:.78rem;padding:2rem 0}
  @media(max-width:768px){.form-grid{grid-template-columns:1fr}}
</style>
</head>
<body>
<div class="container">

<header class="hero">
  <h1>UK PAYE Take-Home Pay</h1>
  <p class="hero-sub">Income tax, National Insurance and net pay from your salary and tax code</p>
</header>

{% if error %}
<div class="error">{{ error }}</div>
{% endif %}

<!-- Input Form -->
<div class="card">
  <h2>Your Details</h2>
  <form method="POST" id="paye-form">
    <div class="form-grid">
      <div class="form-group">
        <label>Gross pay</label>
        <input type="text" name="salary" value="{{ form.salary or '35000' }}">
      </div>
      <div class="form-group">
        <label>Pay quoted</label>
        <select name="pay_period">
          {% for p in pay_periods %}
          <option value="{{ p }}" {{ 'selected' if (form.pay_period or 'yearly') == p }}>{{ p|title }}</option>
          {% endfor %}
        </select>
      </div>
      <div class="form-group">
        <label>Hours per week (hourly pay)</label>
        <input type="number" step="0.5" name="hours" value="{{ form.hours or '40' }}">
      </div>
      <div class="form-group">
        <label>Tax code</label>
        <input type="text" name="tax_code" value="{{ form.tax_code or '1257L' }}">
      </div>
      <div class="form-group">
        <label>Cumulative basis</label>
        <select name="cumulative">
          <option value="yes" {{ 'selected' if (form.cumulative or 'yes') == 'yes' }}>Yes</option>
          <option value="no" {{ 'selected' if form.cumulative == 'no' }}>No (Week1/Month1)</option>
        </select>
      </div>
      <div class="form-group">
        <label>Tax year</label>
        <select name="tax_year">
          {% for y in tax_years %}
          <option value="{{ y }}" {{ 'selected' if (form.tax_year or default_year) == y }}>{{ y }}</option>
          {% endfor %}
        </select>
      </div>
      <div class="form-group">
        <label>Show up to</label>
        <select name="period_type">
          <option value="none" {{ 'selected' if (form.period_type or 'none') == 'none' }}>Whole year</option>
          <option value="month" {{ 'selected' if form.period_type == 'month' }}>Month</option>
          <option value="week" {{ 'selected' if form.period_type == 'week' }}>Week</option>
        </select>
      </div>
      <div class="form-group">
        <label>Period number</label>
        <input type="number" name="period_number" value="{{ form.period_number or '1' }}" min="1" max="52">
      </div>
      <div class="form-group">
        <label>Company car?</label>
        <select name="car">
          <option value="no" {{ 'selected' if (form.car or 'no') == 'no' }}>No</option>
          <option value="yes" {{ 'selected' if form.car == 'yes' }}>Yes</option>
        </select>
      </div>
      <div class="form-group">
        <label>Car list price</label>
        <input type="text" name="list_price" value="{{ form.list_price or '30000' }}">
      </div>
      <div class="form-group">
        <label>Fuel type</label>
        <select name="fuel_type">
          {% for f in fuel_types %}
          <option value="{{ f }}" {{ 'selected' if (form.fuel_type or 'petrol') == f }}>{{ f|title }}</option>
          {% endfor %}
        </select>
      </div>
      <div class="form-group">
        <label>CO2 (g/km)</label>
        <input type="number" name="co2" value="{{ form.co2 or '120' }}" min="0" max="999">
      </div>
      <div class="form-group">
        <label>Electric range (miles, hybrids)</label>
        <input type="number" name="electric_range" value="{{ form.electric_range or '0' }}" min="0">
      </div>
      <div class="form-group">
        <label>Capital contribution</label>
        <input type="text" name="contribution" value="{{ form.contribution or '0' }}">
      </div>
      <div class="form-group">
        <label>Private fuel provided?</label>
        <select name="private_fuel">
          <option value="no" {{ 'selected' if (form.private_fuel or 'no') == 'no' }}>No</option>
          <option value="yes" {{ 'selected' if form.private_fuel == 'yes' }}>Yes</option>
        </select>
      </div>
    </div>
    <div style="margin-top:1.2rem">
      <button type="submit" class="btn btn-primary">Calculate</button>
    </div>
  </form>
</div>

{% if d %}
<!-- Summary -->
<div class="card">
  <h2>Your Pay: {{ d.tax_year }}</h2>
  <p class="desc">{{ d.description }}</p>
  <div class="stat-row"><span class="stat-label">Gross salary</span><span class="stat-value">{{ fmt(d.gross, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Tax-free allowance</span><span class="stat-value">{{ fmt(d.allowance) }}</span></div>
  <div class="stat-row"><span class="stat-label">Income tax</span><span class="stat-value">{{ fmt(d.income_tax, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">National Insurance</span><span class="stat-value">{{ fmt(d.ni, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Take-home pay (annual)</span><span class="stat-value tag-net">{{ fmt(d.net_annual, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Take-home pay (monthly)</span><span class="stat-value tag-net">{{ fmt(d.net_monthly, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Take-home pay (weekly)</span><span class="stat-value tag-net">{{ fmt(d.net_weekly, 2) }}</span></div>
  <div class="stat-row">
    <span class="stat-label">Marginal rate</span>
    <span class="stat-value tag-amber">
      {{ pct(d.marginal.total_marginal_pct) }}
      ({{ pct(d.marginal.income_tax_pct) }} IT + {{ pct(d.marginal.ni_pct) }} NI)
    </span>
  </div>
  <div class="stat-row"><span class="stat-label">Effective rate</span><span class="stat-value">{{ pct(d.effective_rate) }}</span></div>
</div>

<!-- Bands -->
{% for title, bands in [("Income Tax Bands", result.income_tax_bands), ("National Insurance", result.ni_bands)] %}
<div class="card">
  <h2>{{ title }}</h2>
  <div class="table-wrap">
  <table class="tbl">
    <thead><tr><th>Band</th><th>Rate</th><th>From</th><th>To</th><th>Income</th><th>Tax</th></tr></thead>
    <tbody>
    {% for b in bands %}
      <tr>
        <td>{{ b.label }}</td><td>{{ pct(b.rate, 0) }}</td>
        <td>{{ fmt(b.lower) }}</td><td>{{ fmt(b.upper) }}</td>
        <td>{{ fmt(b.amount, 2) }}</td><td>{{ fmt(b.tax, 2) }}</td>
      </tr>
    {% endfor %}
    </tbody>
  </table>
  </div>
</div>
{% endfor %}

<!-- Monthly breakdown -->
<div class="card">
  <h2>Monthly Breakdown</h2>
  <p class="desc">{{ "Cumulative basis: the annual tax is spread evenly." if d.is_cumulative else "Week1/Month1 basis: each month is taxed on its own." }}</p>
  <div class="table-wrap">
  <table class="tbl">
    <thead><tr><th>Month</th><th>Gross</th><th>Tax-free</th><th>Taxable</th><th>Income tax</th><th>NI</th><th>Net pay</th></tr></thead>
    <tbody>
    {% for p in result.monthly_breakdown %}
      <tr>
        <td>{{ p.label }}</td><td>{{ fmt(p.gross, 2) }}</td><td>{{ fmt(p.tax_free, 2) }}</td>
        <td>{{ fmt(p.taxable, 2) }}</td><td>{{ fmt(p.income_tax, 2) }}</td>
        <td>{{ fmt(p.national_insurance, 2) }}</td><td>{{ fmt(p.net, 2) }}</td>
      </tr>
    {% endfor %}
    </tbody>
    <tfoot>
      <tr>
        <td>{{ ytd.label }}</td><td>{{ fmt(ytd.gross, 2) }}</td><td>{{ fmt(ytd.tax_free, 2) }}</td>
        <td>{{ fmt(ytd.taxable, 2) }}</td><td>{{ fmt(ytd.income_tax, 2) }}</td>
        <td>{{ fmt(ytd.national_insurance, 2) }}</td><td>{{ fmt(ytd.net, 2) }}</td>
      </tr>
    </tfoot>
  </table>
  </div>
</div>

{% if d.car %}
<div class="card">
  <h2>Company Car</h2>
  <div class="stat-row"><span class="stat-label">Appropriate percentage</span><span class="stat-value">{{ pct(d.car.appropriate_percentage, 0) }}</span></div>
  <div class="stat-row"><span class="stat-label">Car benefit</span><span class="stat-value">{{ fmt(d.car.bik_value, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Fuel benefit</span><span class="stat-value">{{ fmt(d.car.fuel_benefit, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Total taxable benefit</span><span class="stat-value">{{ fmt(d.car.total_benefit, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Extra tax per year</span><span class="stat-value tag-amber">{{ fmt(d.car.tax_payable, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Extra tax per month</span><span class="stat-value tag-amber">{{ fmt(d.car.monthly_tax_cost, 2) }}</span></div>
</div>
{% endif %}

{% for title, text in chart_titles %}
{% if charts|length > loop.index0 %}
<div class="card">
  <h2>{{ title }}</h2>
  <p class="desc">{{ text }}</p>
  <img class="chart-img" src="data:image/png;base64,{{ charts[loop.index0] }}" alt="{{ title }}">
</div>
{% endif %}
{% endfor %}

<div class="dl-section">
  <a href="/download-pdf" class="btn btn-success">Download PDF Report</a>
  <a href="/download-csv?{{ query }}" class="btn btn-primary">Download CSV</a>
</div>
{% endif %}

<div class="footer">Estimates only. Your payslip may differ by pennies because of HMRC rounding tables.</div>
</div>
</body>
</html>
"""

CHART_TITLES = [
    ("Monthly Breakdown", "Net pay, income tax and National Insurance for each month of the tax year."),
    ("Tax by Band", "How much of your income falls in each band and the tax it attracts."),
    ("Deduction Rates", "Effective and marginal rate of income tax plus NI across salaries for your tax code."),
]


def _render(form: Mapping[str, Any], status: int = 200, **ctx: Any):
    ctx.setdefault("d", None)
    ctx.setdefault("result", None)
    ctx.setdefault("charts", [])
    ctx.setdefault("error", None)
    html = render_template_string(
        HTML_TEMPLATE,
        form=form,
        pay_periods=["yearly", "monthly", "weekly", "daily", "hourly"],
        tax_years=sorted(cfg.TAX_YEARS),
        default_year=_settings().tax_year,
        fuel_types=FUEL_TYPES,
        chart_titles=CHART_TITLES,
        fmt=fmt,
        pct=pct,
        **ctx,
    )
    return html, status


_CSV_FIELDS = ("salary", "pay_period", "hours", "tax_code", "cumulative",
               "period_type", "period_number", "tax_year")


def _calculate(inputs: CalculationInputs):
    return calculate_tax_details(
        inputs.salary, inputs.tax_code, inputs.is_cumulative, inputs.period,
        tax_year=inputs.tax_year,
    )


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        return _render({})

    form = request.form.to_dict()
    try:
        inputs = parse_form(form)
    except ValueError as exc:
        logger.info("Rejected form input: %s", exc)
        return _render(form, 400, error=str(exc))

    result = _calculate(inputs)
    d = compute_display_data(result, inputs.car)
    chart_images = report.get_web_charts(result)

    # Save PDF for download
    report.generate_pdf(result, _settings().report_path)

    query = urlencode({k: v for k, v in form.items() if k in _CSV_FIELDS})
    return _render(
        form,
        d=d,
        result=result,
        ytd=year_to_date(result),
        charts=chart_images,
        query=query,
    )


@app.route("/download-pdf")
def download_pdf():
    path = _settings().report_path
    if os.path.exists(path):
        return send_file(os.path.abspath(path), as_attachment=True, download_name="paye_report.pdf")
    return "No report generated yet. Run a calculation first.", 404


@app.route("/download-csv")
def download_csv():
    try:
        inputs = parse_form(request.args)
    except ValueError as exc:
        return str(exc), 400
    csv_text = report.breakdown_to_csv(_calculate(inputs))
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=paye_breakdown.csv"},
    )


# ═══════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════

def _bad_request(message: str):
    return jsonify({"error": message}), 400


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


@app.route("/api/calculate", methods=["POST"])
def api_calculate():
    try:
        body = _json_body()
        salary = body.get("annualSalary")
        validate_salary(salary).raise_for_error()
        code = body.get("taxCode") or cfg.DEFAULT_TAX_CODE
        validate_tax_code(code).raise_for_error()
        period = None
        if body.get("currentPeriod"):
            spec = body["currentPeriod"]
            if not isinstance(spec, dict):
                raise ValueError("currentPeriod must be an object with type and number")
            kind, number = spec.get("type"), spec.get("number")
            validate_period_number(number, kind).raise_for_error()
            period = Period(kind, number)
        basis = NonCumulativeBasis(body.get("nonCumulativeBasis", NonCumulativeBasis.BANDED.value))
        result = calculate_tax_details(
            parse_amount(salary), code, _yes(body.get("isCumulative"), default=True), period,
            tax_year=_tax_year(body.get("taxYear")),
            non_cumulative_basis=basis,
        )
    except ValueError as exc:
        return _bad_request(str(exc))
    return jsonify(result.to_dict())


@app.route("/api/compare", methods=["POST"])
def api_compare():
    try:
        body = _json_body()
        scenarios = [
            Scenario(
                name=s.get("name", ""),
                salary=s.get("salary"),
                tax_code=s.get("taxCode") or cfg.DEFAULT_TAX_CODE,
                is_cumulative=_yes(s.get("isCumulative"), default=True),
            )
            for s in body.get("scenarios", [])
        ]
        if not scenarios:
            raise ValueError("At least one scenario is required")
        outcomes = compare_scenarios(scenarios, tax_year=_tax_year(body.get("taxYear")))
    except ValueError as exc:
        return _bad_request(str(exc))

    rows = []
    for o in outcomes:
        summary = o.result.to_dict()["annualSummary"]
        summary["name"] = o.scenario.name
        summary["taxCode"] = o.result.tax_code.code
        summary["netDifference"] = float(DEFAULT_ARITHMETIC.round(o.net_difference))
        rows.append(summary)
    return jsonify({"scenarios": rows})


@app.route("/api/car-benefit", methods=["POST"])
def api_car_benefit():
    try:
        body = _json_body()
        rate = body.get("taxRate", 20)
        validate_percentage(rate, "Tax rate").raise_for_error()
        inputs = CarBenefitInputs(
            list_price=parse_amount(body.get("listPrice", 0)),
            co2_emissions=int(body.get("co2Emissions", 0)),
            fuel_type=body.get("fuelType", "petrol"),
            rde2_compliant=_yes(body.get("rde2Compliant"), default=True),
            electric_range=int(body.get("electricRange", 0)),
            capital_contribution=parse_amount(body.get("capitalContribution", 0)),
            private_fuel_provided=_yes(body.get("privateFuel")),
            tax_rate=parse_amount(rate),
            tax_year=_tax_year(body.get("taxYear")),
        )
    except (ValueError, TypeError) as exc:
        return _bad_request(str(exc))

    r = calculate_car_benefit(inputs)
    return jsonify({
        "appropriatePercentage": float(r.appropriate_percentage),
        "bikValue": float(r.bik_value),
        "fuelBenefit": float(r.fuel_benefit),
        "totalBenefit": float(r.total_benefit),
        "taxPayable": float(r.tax_payable),
        "monthlyTaxCost": float(r.monthly_tax_cost),
    })


@app.route("/api/tax-code/<path:code>")
def api_tax_code(code: str):
    parsed = parse_tax_code(code)
    allowance = parsed.base_allowance
    return jsonify({
        "code": parsed.code,
        "valid": validate_tax_code(code).is_valid,
        "description": describe_tax_code(code),
        "region": parsed.region.value,
        "allowance": "unbounded" if allowance.is_infinite() else float(allowance),
        "specialRate": parsed.special_rate.value if parsed.special_rate else None,
        "isNonCumulative": parsed.is_non_cumulative,
        "marriageAllowanceDelta": float(parsed.marriage_allowance_delta),
    })


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True, settings: Optional[cfg.Settings] = None) -> None:
    """Start the Flask development server and open browser."""
    import webbrowser
    import threading

    settings = settings or _settings()
    app.config["PAYE_SETTINGS"] = settings
    url = f"http://{settings.host}:{settings.port}"
    print(f"Starting web app at {url}")
    threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host=settings.host, port=settings.port, debug=debug)


if __name__ == "__main__":
    run_web()
