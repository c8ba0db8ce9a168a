import argparse

import pytest

from fp32_model import FP32Model


def pytest_addoption(parser):
    parser.addoption(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="whether to produce vcd files of each FPU simulation",
    )


@pytest.fixture
def model():
    """Golden model with the default divide-by-zero policy"""
    return FP32Model()
