"""Rendering of estimation reports as JSON or as a text table."""

from __future__ import annotations

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from carbonestimate.estimate import sort_estimations
from carbonestimate.estimation import EstimationReport, format_decimal

logger = logging.getLogger(__name__)

_HEADER = ("resource", "count", "replicas", "emissions per instance")


def generate_report_json(report: EstimationReport) -> str:
    """Return the report as indented JSON."""
    logger.debug("Generating JSON report")
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def _fixed(value: Decimal) -> str:
    return format(value.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP), "f")


def _render_table(
    header: Sequence[str], rows: Sequence[Sequence[str]], footer: Sequence[str]
) -> str:
    widths = [max(map(len, column)) for column in zip(header, *rows, footer)]
    separator = " " + "".join("-" * (width + 2) + " " for width in widths)

    def line(cells: Sequence[str]) -> str:
        return " " + "".join(f" {cell.ljust(width)}  " for cell, width in zip(cells, widths))

    lines = [
        separator,
        line(header),
        separator,
        *(line(row) for row in rows),
        separator,
        line(footer),
        separator,
    ]
    return "\n".join(lines) + "\n"


def generate_report_text(report: EstimationReport, is_forecast: bool = False) -> str:
    """Return the report as a text table of emissions per instance."""
    logger.debug("Generating text report")
    kind = "forecast" if is_forecast else "estimation"
    title = f"\n  Average {kind} of CO2 emissions per instance: \n\n"
    unit = report.info.unit_carbon_emissions_time

    sort_estimations(report.resources)
    rows = [
        [
            estimation.resource.address(),
            str(estimation.resource.identification.count),
            str(estimation.resource.identification.replication_factor),
            f" {_fixed(estimation.carbon_emissions)} {unit}",
        ]
        for estimation in report.resources
    ]
    rows.extend(
        [resource.identification.address, "", "", "unsupported"]
        for resource in report.unsupported_resources
    )
    footer = [
        "Total",
        format_decimal(report.total.resources_count),
        "",
        f" {_fixed(report.total.carbon_emissions)} {unit}",
    ]
    return title + _render_table(_HEADER, rows, footer)