from __future__ import annotations

import logging

REDACTED_ATTRS = ("request", "request_body", "data", "body", "activities", "payload", "authorization")


class StripSensitiveFieldsFilter(logging.Filter):
    """
    Drop request bodies, raw activity listings and credentials from log records.
    Activity payloads carry other users' ids and names.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for attr in REDACTED_ATTRS:
            if hasattr(record, attr):
                setattr(record, attr, None)
        return True
