"""HTML analytics report."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, Environment


_INDIAN_UNITS = (("Cr", 1e7), ("L", 1e5))


def format_exposure(value, digits: int = 2) -> str:
    """Format a rupee exposure in crore (Cr) or lakh (L), or N/A when missing."""
    if value is None:
        return "N/A"
    amount = float(value)
    for unit, scale in _INDIAN_UNITS:
        if abs(amount) >= scale:
            return f"{amount / scale:.{digits}f}{unit}"
    return f"{amount:.0f}"


def format_optional(value, fmt: str = "%.2f"):
    """Format a number, or N/A when missing."""
    if value is None:
        return "N/A"
    return fmt % float(value)


_jinja_env = Environment(loader=BaseLoader(), autoescape=True)
_jinja_env.filters["format_exposure"] = format_exposure
_jinja_env.filters["format_optional"] = format_optional


HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Trading Console Analytics</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 24px; color: #1b1b1b; background: #fafafa; }
    h1 { color: #16334c; border-bottom: 3px solid #16334c; padding-bottom: 12px; }
    h2 { color: #16334c; margin-top: 32px; border-bottom: 1px solid #ddd; padding-bottom: 8px; }
    table { border-collapse: collapse; width: 100%; margin: 16px 0; font-size: 0.95em; }
    th, td { border: 1px solid #cbd5e0; padding: 10px 12px; text-align: left; }
    th { background-color: #edf2f7; font-weight: 600; }
    tr:nth-child(even) { background-color: #f7fafc; }
    .note { font-size: 0.9em; color: #4a5568; background: #fffaf0; padding: 12px; border-left: 4px solid #ed8936; margin: 12px 0; }
  </style>
</head>
<body>
  <h1>Trading Console Analytics</h1>
  <p>Generated {{ generated_at }}</p>

  <h2>Implied Volatility (daily snapshots, {{ window_days }} days)</h2>
  {% if iv_rows %}
  <table>
    <tr><th>Instrument</th><th>Latest IV</th><th>IV Rank</th><th>IV Percentile</th><th>Days</th></tr>
    {% for row in iv_rows %}
    <tr>
      <td>{{ row.key }}</td>
      <td>{{ row.latest | format_optional }}</td>
      <td>{{ row.rank | format_optional("%.1f") }}</td>
      <td>{{ row.percentile | format_optional("%.1f") }}</td>
      <td>{{ row.samples }}</td>
    </tr>
    {% endfor %}
  </table>
  {% for row in iv_rows if row.plot %}
  <img src="data:image/png;base64,{{ row.plot }}" alt="{{ row.key }} IV history" />
  {% endfor %}
  {% else %}
  <p class="note">No IV snapshots recorded.</p>
  {% endif %}

  <h2>P&amp;L ({{ pnl_day }})</h2>
  <table>
    <tr><th>Last</th><th>High</th><th>Low</th><th>Max Drawdown</th><th>Samples</th></tr>
    <tr>
      <td>{{ "%.2f" | format(pnl.last) }}</td>
      <td>{{ "%.2f" | format(pnl.high) }}</td>
      <td>{{ "%.2f" | format(pnl.low) }}</td>
      <td>{{ "%.2f" | format(pnl.max_drawdown) }}</td>
      <td>{{ pnl.samples }}</td>
    </tr>
  </table>
  {% if pnl_plot %}
  <img src="data:image/png;base64,{{ pnl_plot }}" alt="P&amp;L curve" />
  {% endif %}

  {% if gex %}
  <h2>Gamma Exposure (spot {{ "%.2f" | format(gex.spot) }})</h2>
  <table>
    <tr><th>Net GEX</th><th>Max GEX Strike</th><th>Gamma Flip</th></tr>
    <tr>
      <td>{{ gex.net_gex | format_exposure }}</td>
      <td>{{ "%.2f" | format(gex.max_gex_strike) if gex.max_gex_strike else "N/A" }}</td>
      <td>{{ "%.2f" | format(gex.gex_flip_strike) if gex.gex_flip_strike else "N/A" }}</td>
    </tr>
  </table>
  {% if gex.top_strikes %}
  <table>
    <tr><th>Strike</th><th>Net GEX</th></tr>
    {% for strike, value in gex.top_strikes %}
    <tr><td>{{ "%.2f" | format(strike) }}</td><td>{{ value | format_exposure }}</td></tr>
    {% endfor %}
  </table>
  {% endif %}
  {% if gex.plot %}
  <img src="data:image/png;base64,{{ gex.plot }}" alt="GEX by strike" />
  {% endif %}
  {% endif %}
</body>
</html>
"""


def write_report(output_path: Path, context: dict) -> None:
    """Render and write HTML report to disk."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    template = _jinja_env.from_string(HTML_TEMPLATE)
    content = template.render(**context)
    output_path.write_text(content, encoding="utf-8")
