"""
Unit tests for utils/test_run.py argument building and result bookkeeping.
"""

from __future__ import annotations

from groupsplit.utils.test_run import (
    INTEGRATION_DIR,
    UNIT_DIR,
    Stats,
    TResult,
    _parser,
    build_pytest_args,
)


def test_full_suite_runs_both_tiers():
    args = build_pytest_args()
    assert args[:2] == [UNIT_DIR, INTEGRATION_DIR]
    assert "-x" not in args


def test_unit_only_with_options():
    args = build_pytest_args(unit_only=True, fail_fast=True, keyword="custom")
    assert args[0] == UNIT_DIR
    assert INTEGRATION_DIR not in args
    assert "-x" in args
    assert args[args.index("-k") + 1] == "custom"


def test_coverage_targets_services_and_schemas():
    args = build_pytest_args(integration_only=True, with_coverage=True, extra=["-vv"])
    assert args[0] == INTEGRATION_DIR
    assert "--cov=groupsplit.app.services" in args
    assert "--cov=groupsplit.app.schemas" in args
    assert args[-1] == "-vv"


def test_parser_keeps_unknown_arguments_for_pytest():
    args, remainder = _parser().parse_known_args(["--unit", "-k", "money", "--lf"])
    assert args.unit is True
    assert args.k == "money"
    assert remainder == ["--lf"]


def test_result_tier_and_stats():
    results = [
        TResult("groupsplit/tests/unit/test_money.py::test_average", "passed", 0.01),
        TResult("groupsplit/tests/integration/test_splits.py::TestCalculate::test_x", "failed", 0.2),
    ]
    st = Stats(results=results)

    assert results[0].tier == "unit"
    assert results[1].tier == "integration"
    assert results[1].module_stem == "test_splits"
    assert results[1].short_name == "TestCalculate::test_x"
    assert st.passed == 1
    assert st.failed == 1
    assert st.rate == 50.0
    assert st.ok is False
