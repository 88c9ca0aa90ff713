"""Invoice data extraction through an external vision model.

The extractor turns the bytes of an uploaded invoice into the raw JSON object
the model returned. It does not clean the values up; that is the job of
``invoice_normalization``.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any, Dict, Optional, Protocol

from openai import OpenAI, OpenAIError

from stockroom.core.config import settings
from stockroom.core.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """
You are an invoice parser. Read the attached invoice and extract structured data.
The supplier is already known; do NOT infer or include supplier info.
Return ONLY valid JSON with this exact shape:
{
  "issue_date": string | null,
  "currency": string | null,
  "line_items": [
    {
      "line_no": number | null,
      "code": string | null,
      "description": string,
      "barcode": string | null,
      "quantity": number | null,
      "unit": string | null,
      "unit_price": number | null,
      "total_price": number | null
    }
  ]
}
Use null when a value is missing. Do not include any text outside the JSON.
""".strip()

_FENCE_START_JSON = re.compile(r"^```json\s*", re.IGNORECASE)
_FENCE_START = re.compile(r"^```\s*")
_FENCE_END = re.compile(r"```$")


class InvoiceExtractor(Protocol):
    """Anything that can read an invoice document into a JSON object."""

    def extract(self, content: bytes, mime_type: str) -> Dict[str, Any]:
        ...


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence the model may wrap its JSON in."""
    trimmed = text.strip()
    without_start = _FENCE_START.sub("", _FENCE_START_JSON.sub("", trimmed))
    return _FENCE_END.sub("", without_start).strip()


def parse_extraction_reply(text: Optional[str]) -> Dict[str, Any]:
    """Decode the model's reply into a JSON object.

    Raises:
        ServiceError: UPSTREAM if the reply is empty, not JSON, or not an object.
    """
    if text is None or not text.strip():
        logger.error("Invoice extraction returned an empty reply")
        raise ServiceError(ErrorKind.UPSTREAM, "Extraction service returned an empty response")

    body = strip_code_fences(text)
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as e:
        logger.error(f"Invoice extraction reply is not JSON ({len(body)} chars): {e}")
        raise ServiceError(ErrorKind.UPSTREAM, "Failed to parse extraction response as JSON")

    if not isinstance(parsed, dict):
        logger.error(f"Invoice extraction reply is {type(parsed).__name__}, expected an object")
        raise ServiceError(ErrorKind.UPSTREAM, "Extraction response is not a JSON object")
    return parsed


def _document_part(content: bytes, mime_type: str) -> Dict[str, Any]:
    encoded = base64.b64encode(content).decode("utf-8")
    data_url = f"data:{mime_type};base64,{encoded}"
    if mime_type == "application/pdf":
        return {"type": "file", "file": {"filename": "invoice.pdf", "file_data": data_url}}
    return {"type": "image_url", "image_url": {"url": data_url}}


class OpenAIInvoiceExtractor:
    """Extracts invoice data with an OpenAI vision-capable chat model.

    One blocking request per call, bounded by ``timeout`` seconds, with the
    client's automatic retries turned off.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                logger.error("Invoice extraction requested but OPENAI_API_KEY is not set")
                raise ServiceError(
                    ErrorKind.CONFIGURATION, "Extraction service API key is not configured"
                )
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def extract(self, content: bytes, mime_type: str) -> Dict[str, Any]:
        client = self._get_client()

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": EXTRACTION_PROMPT},
                            _document_part(content, mime_type),
                        ],
                    }
                ],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except OpenAIError as e:
            status = getattr(e, "status_code", None)
            logger.error(f"Invoice extraction request failed (status={status}): {e}")
            raise ServiceError(ErrorKind.UPSTREAM, "Extraction service request failed")

        choices = getattr(response, "choices", None) or []
        text = choices[0].message.content if choices else None
        return parse_extraction_reply(text)


def get_invoice_extractor() -> InvoiceExtractor:
    """Dependency provider for the configured extractor."""
    return OpenAIInvoiceExtractor(
        api_key=settings.openai_api_key,
        model=settings.invoice_extraction_model,
        timeout=settings.extraction_timeout_seconds,
    )
