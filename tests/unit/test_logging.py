"""로깅 유틸리티 테스트"""
import logging

import pytest

from localevents.core.logging import LOGGER_NAME, logger, sanitize_for_log, setup_logging


class TestSanitizeForLog:
    """민감 정보 마스킹"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (
                "https://example.test/models/m:generateContent?key=abc123&alt=json",
                "https://example.test/models/m:generateContent?key=***&alt=json",
            ),
            ("x-goog-api-key: abc123", "x-goog-api-key: ***"),
            ('{"token": "s3cr3t"}', '{"token": "***"}'),
            ("password=hunter2 region=Tulsa", "password=*** region=Tulsa"),
        ],
    )
    def test_secret_values_masked(self, value, expected):
        assert sanitize_for_log(value, max_length=200) == expected

    def test_plain_values_kept(self):
        assert sanitize_for_log("Oklahoma City") == "Oklahoma City"

    def test_empty_value(self):
        assert sanitize_for_log("") == "[empty]"

    def test_long_values_truncated(self):
        assert sanitize_for_log("a" * 150, max_length=10) == "a" * 10 + "..."


def test_package_logger_is_configured_once():
    def own_handlers():
        return [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and h.get_name() == LOGGER_NAME]

    assert logger.name == "localevents"
    assert len(own_handlers()) == 1

    assert setup_logging() is logger
    setup_logging()
    assert len(own_handlers()) == 1
