"""App data — the metadata document an order's ``appData`` hash commits to."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog
from eth_utils import keccak, to_checksum_address

from config.settings import settings

logger = structlog.get_logger("execution.app_data")

APP_DATA_DOC_VERSION = "0.3.0"
QUOTE_METADATA_VERSION = "0.1.0"
REFERRER_METADATA_VERSION = "0.1.0"
ENVIRONMENT_METADATA_VERSION = "0.1.0"


@dataclass(frozen=True)
class AppDataInfo:
    """App-data document and its bytes32 hash (``0x`` hex)."""

    doc: dict[str, Any]
    hash: str


def build_app_data(
    sell_amount: str,
    buy_amount: str,
    referrer_account: str | None = None,
    app_code: str | None = None,
    environment: str | None = None,
) -> AppDataInfo:
    """Build the app-data document for an order and hash it.

    The quote block is always present; referrer and environment blocks
    only when given.  ``app_code`` and ``environment`` default to settings.
    """
    metadata: dict[str, Any] = {"quote": _quote_metadata(sell_amount, buy_amount)}

    if referrer_account:
        metadata["referrer"] = {
            "address": to_checksum_address(referrer_account),
            "version": REFERRER_METADATA_VERSION,
        }

    env_name = environment if environment is not None else settings.APP_DATA_ENVIRONMENT
    if env_name:
        metadata["environment"] = {"name": env_name, "version": ENVIRONMENT_METADATA_VERSION}

    doc = {
        "version": APP_DATA_DOC_VERSION,
        "appCode": app_code or settings.APP_CODE,
        "metadata": metadata,
    }
    app_data_hash = calculate_app_data_hash(doc)
    logger.debug("app_data.built", app_data=app_data_hash, blocks=sorted(metadata))
    return AppDataInfo(doc=doc, hash=app_data_hash)


def calculate_app_data_hash(doc: dict[str, Any]) -> str:
    """keccak-256 of the canonical (sorted, compact) JSON of ``doc``."""
    canonical = json.dumps(doc, sort_keys=True, separators=(",", ":"))
    return "0x" + keccak(text=canonical).hex()


def _quote_metadata(sell_amount: str, buy_amount: str) -> dict[str, str]:
    # TODO: add the quote id once quotes are requested through the order book API
    return {
        "sellAmount": sell_amount,
        "buyAmount": buy_amount,
        "version": QUOTE_METADATA_VERSION,
    }
