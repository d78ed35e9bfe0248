"""
Tests for the --run-integration gate in the root conftest.

Runs the real root conftest against a throwaway test module with pytester.
"""

from pathlib import Path

import pytest

ROOT_CONFTEST = Path(__file__).resolve().parents[2] / "conftest.py"

MARKED_MODULE = """
import pytest

@pytest.mark.integration
def test_live():
    pass

def test_unit():
    pass
"""


@pytest.fixture
def gated(pytester):
    pytester.makeconftest(ROOT_CONFTEST.read_text())
    pytester.makepyfile(test_gated=MARKED_MODULE)
    return pytester


class TestIntegrationGate:
    """Integration tests run only with the flag and a token."""

    def test_skipped_without_flag(self, gated, monkeypatch):
        monkeypatch.setenv("APIFY_TOKEN", "token")
        result = gated.runpytest("-rs")
        result.assert_outcomes(passed=1, skipped=1)
        result.stdout.fnmatch_lines(["*use --run-integration to run*"])

    def test_skipped_without_token(self, gated, monkeypatch):
        monkeypatch.delenv("APIFY_TOKEN", raising=False)
        result = gated.runpytest("-rs", "--run-integration")
        result.assert_outcomes(passed=1, skipped=1)
        result.stdout.fnmatch_lines(["*APIFY_TOKEN not set*"])

    def test_runs_with_flag_and_token(self, gated, monkeypatch):
        monkeypatch.setenv("APIFY_TOKEN", "token")
        result = gated.runpytest("--run-integration")
        result.assert_outcomes(passed=2)
