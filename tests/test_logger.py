"""Tests for core/logger.py."""

from __future__ import annotations

import logging

from core.logger import setup_logging, shorten_hex_values


class TestShortenHexValues:

    def test_long_hex_is_shortened(self) -> None:
        uid = "0x" + "ab" * 56
        event = shorten_hex_values(None, "info", {"event": "x", "order_id": uid})
        assert event["order_id"] == "0xabababab…abababab"

    def test_addresses_are_kept(self) -> None:
        address = "0x1111111111111111111111111111111111111111"
        event = shorten_hex_values(None, "info", {"event": "x", "account": address, "n": 3})
        assert event == {"event": "x", "account": address, "n": 3}


class TestSetupLogging:

    def test_level_override(self) -> None:
        setup_logging(level="debug", force=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_idempotent(self) -> None:
        setup_logging(level="warning", force=True)
        handler = logging.getLogger().handlers[0]
        setup_logging(level="debug")
        assert logging.getLogger().handlers[0] is handler
        assert logging.getLogger().level == logging.WARNING
