"""
Structured bill parsing: raw bill text -> ParsedBill (invoice metadata + line items).
Model output is unreliable, so decoding is tolerant and never raises; only transport failures do.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests
from pydantic import ValidationError

from core.exceptions import ExtractionFailure
from core.interfaces import IBillParser, ILLMProvider
from core.models import ParseWarning
from core.schema import ExtractedItem, ParsedBill
from extraction import fields
from extraction.json_decode import JsonDecodeFailure, decode_json_object
from prompts import BILL_PARSING_SYSTEM_PROMPT, load_prompt
from utils.logger import log_structured
from utils.retry import with_retry

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 200


def _build_user_prompt(text: str) -> str:
    return f"Extract data from this bill text:\n\n{text}"


def item_from_dict(data: dict[str, Any]) -> ExtractedItem:
    """Coerce one model item (canonical or alternate key spellings) into an ExtractedItem."""
    return ExtractedItem(
        medicine_name=fields.to_text(fields.first_present(data, fields.NAME_KEYS)),
        quantity=fields.to_quantity(fields.first_present(data, fields.QUANTITY_KEYS)),
        batch_number=fields.to_text(fields.first_present(data, fields.BATCH_KEYS)),
        expiry_date_text=fields.to_text(fields.first_present(data, fields.EXPIRY_KEYS)),
        mrp=fields.to_non_negative(fields.first_present(data, fields.MRP_KEYS)),
        cost_rate=fields.to_non_negative(fields.first_present(data, fields.RATE_KEYS)),
    )


def bill_from_dict(data: dict[str, Any]) -> ParsedBill:
    """Build a ParsedBill from a decoded JSON object. Non-object items are skipped."""
    raw_items = data.get("items")
    items: list[ExtractedItem] = []
    if isinstance(raw_items, list):
        for raw in raw_items:
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object item: %r", raw)
                continue
            items.append(item_from_dict(raw))
    return ParsedBill(
        invoice_number=fields.to_optional_text(fields.first_present(data, fields.INVOICE_NUMBER_KEYS)),
        invoice_date=fields.to_optional_text(fields.first_present(data, fields.INVOICE_DATE_KEYS)),
        supplier_name=fields.to_optional_text(fields.first_present(data, fields.SUPPLIER_KEYS)),
        total_amount=fields.to_number(fields.first_present(data, fields.TOTAL_KEYS)),
        items=items,
    )


def parse_bill_response(raw: str, *, page_index: int = 0) -> ParsedBill:
    """
    Decode a parsing-model response. On undecodable output return an empty bill carrying a
    ParseWarning instead of raising.
    """
    try:
        data = decode_json_object(raw or "")
        return bill_from_dict(data)
    except (JsonDecodeFailure, ValidationError) as e:
        warning = ParseWarning(
            page_index=page_index,
            reason=str(e),
            raw_excerpt=(raw or "")[:RAW_EXCERPT_CHARS],
        )
        log_structured(
            logger,
            logging.WARNING,
            "Bill parsing degraded to empty item list",
            event="bill_parse_degraded",
            page_index=page_index,
            reason=warning.reason,
        )
        return ParsedBill(warnings=[warning])


class StructuredBillParser(IBillParser):
    """Text model via injected provider. One request per page with a fixed JSON-shape system prompt."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        model: str = "arcee-ai/trinity-large-preview:free",
        max_retries: int = 3,
        retry_delay_sec: float = 2.0,
        max_tokens: int = 4096,
        system_prompt: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._llm = llm_provider
        self._model = model
        self._max_retries = max_retries
        self._retry_delay_sec = retry_delay_sec
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt or load_prompt(BILL_PARSING_SYSTEM_PROMPT)
        self._sleep = sleep

    def parse(self, text: str, *, page_index: int = 0) -> ParsedBill:
        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": _build_user_prompt(text or "")},
        ]
        logger.info("Calling parsing model (model=%s) for page %s", self._model, page_index + 1)
        try:
            raw = with_retry(
                lambda: self._llm.chat(
                    messages,
                    model=self._model,
                    max_tokens=self._max_tokens,
                    temperature=0.0,
                ),
                max_attempts=self._max_retries,
                delay_sec=self._retry_delay_sec,
                retry_exceptions=(requests.RequestException,),
                label="Bill parsing",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.warning("Bill parsing request failed for page %s: %s", page_index + 1, e)
            raise ExtractionFailure(f"Bill parsing request failed: {e}") from e
        logger.debug("Parsing model response length: %s", len(raw or ""))
        bill = parse_bill_response(raw, page_index=page_index)
        logger.info("Parsed %s item(s) from page %s", len(bill.items), page_index + 1)
        return bill
