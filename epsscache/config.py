"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Central configuration constants for the EPSS score cache.
"""

from __future__ import annotations

from datetime import timedelta

# Remote dataset ------------------------------------------------------------

DEFAULT_DATA_URL = "https://epss.cyentia.com/epss_scores-current.csv.gz"
"""Location of the current EPSS scores snapshot."""

DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
"""Timeout applied to each dataset download."""

USER_AGENT = "epsscache/1.0"

# Refresh policy ------------------------------------------------------------

DEFAULT_UPDATE_INTERVAL = timedelta(hours=24)
"""Age after which the cached snapshot is refreshed."""

# Dataset format ------------------------------------------------------------

CVE_PREFIX = "CVE-"
EXPECTED_HEADER = ("cve", "epss", "percentile")
SCORE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S+0000"

# Environment variables -----------------------------------------------------

ENV_DATA_URL = "EPSS_DATA_URL"
ENV_UPDATE_INTERVAL_HOURS = "EPSS_UPDATE_INTERVAL_HOURS"
ENV_HTTP_TIMEOUT = "EPSS_HTTP_TIMEOUT"
