# genboq/assistant.py

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from genboq.errors import DomainInvariantError
from genboq.gemini_handler import OracleContext
from genboq.prompts import ASSISTANT_SYSTEM_INSTRUCTION, render_product_details_prompt

logger = logging.getLogger(__name__)

ASSISTANT_TEMPERATURE = 0.7
_IMAGE_URL_LINE = re.compile(r'^\s*IMAGE_URL:\s*(\S+)\s*$', re.IGNORECASE | re.MULTILINE)


class GenBoqAssistant:
    """Multi-turn product chat. History is kept per instance (one per session)."""

    def __init__(self, oracle):
        self.oracle = oracle
        self.history: List[Tuple[str, str]] = []

    def ask(self, message: str) -> str:
        if not message or not message.strip():
            raise DomainInvariantError("Message is empty")
        context = OracleContext(
            history=tuple(self.history),
            temperature=ASSISTANT_TEMPERATURE,
            system_instruction=ASSISTANT_SYSTEM_INSTRUCTION,
        )
        reply = self.oracle.complete(message.strip(), context)
        # only successful exchanges are remembered
        self.history.append(('user', message.strip()))
        self.history.append(('model', reply))
        return reply

    def reset(self):
        self.history = []


@dataclass(frozen=True)
class ProductDetails:
    description: str
    image_url: Optional[str] = None


def parse_product_details(text: str) -> ProductDetails:
    match = _IMAGE_URL_LINE.search(text)
    image_url = None
    if match and match.group(1).lower().startswith(('http://', 'https://')):
        image_url = match.group(1)
    description = _IMAGE_URL_LINE.sub('', text).strip()
    return ProductDetails(description=description, image_url=image_url)


def fetch_product_details(oracle, product_name: str) -> ProductDetails:
    logger.info(f"Fetching product details for '{product_name}'")
    text = oracle.complete(render_product_details_prompt(product_name), OracleContext(temperature=0.2))
    return parse_product_details(text)
