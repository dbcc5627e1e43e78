import logging

from django.test import SimpleTestCase

from config.logging_filters import HealthEndpointFilter


def _record(name: str, msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class LoggingFilterTests(SimpleTestCase):
    def test_health_endpoint_filter(self) -> None:
        filt = HealthEndpointFilter()

        self.assertFalse(filt.filter(_record("django.server", '"GET /healthz HTTP/1.1" 200 12')))
        self.assertTrue(filt.filter(_record("django.server", '"GET /readyz HTTP/1.1" 503 12')))
        self.assertTrue(filt.filter(_record("django.server", '"POST /api/votes HTTP/1.1" 200 48')))

    def test_health_endpoint_filter_handles_gunicorn_format(self) -> None:
        filt = HealthEndpointFilter()

        record_ok = _record(
            "gunicorn.access",
            '- - - [27/Jan/2026:10:49:08 +0000] "GET /readyz HTTP/1.1" 200 37 "-" "Go-http-client/1.1" 812us',
        )
        self.assertFalse(filt.filter(record_ok))
