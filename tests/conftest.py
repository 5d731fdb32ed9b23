"""Shared fixtures for the PAYE calculator tests."""

from __future__ import annotations

from dataclasses import replace

import pytest

import config as cfg
from calculator import calculate_tax_details
from logging_config import reset_logging
from precision import PrecisionArithmetic


@pytest.fixture
def arith():
    return PrecisionArithmetic()


@pytest.fixture
def year_2024():
    return cfg.get_tax_year("2024-25")


@pytest.fixture
def standard_result():
    """£50,000 on 1257L, cumulative, 2024-25."""
    return calculate_tax_details(50000, "1257L", True)


@pytest.fixture
def settings(tmp_path):
    return replace(cfg.Settings(), report_path=str(tmp_path / "report.pdf"))


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()
