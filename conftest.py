import os

import pytest

pytest_plugins = ["pytester"]


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests that start real Apify actor runs (needs APIFY_TOKEN, billed).",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: starts real Apify actor runs; skipped unless --run-integration is given"
    )


def pytest_collection_modifyitems(config, items):
    integration_items = [item for item in items if "integration" in item.keywords]
    if not integration_items:
        return

    if not config.getoption("--run-integration"):
        reason = "integration test (use --run-integration to run)"
    elif not os.getenv("APIFY_TOKEN"):
        reason = "APIFY_TOKEN not set"
    else:
        return

    skip = pytest.mark.skip(reason=reason)
    for item in integration_items:
        item.add_marker(skip)
