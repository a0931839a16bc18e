from __future__ import annotations

import re
from enum import Enum
from typing import Optional


class Placeholder(str, Enum):
    """The closed set of template variables. Anything else renders as ''."""

    CLIENT_NAME = "client_name"
    CLIENT_EMAIL = "client_email"
    CLIENT_PHONE = "client_phone"
    COMPANY_NAME = "company_name"
    COMPANY_EMAIL = "company_email"
    COMPANY_PHONE = "company_phone"
    COMPANY_ADDRESS = "company_address"
    QUOTE_TITLE = "quote_title"
    QUOTE_ID = "quote_id"
    QUOTE_TOTAL = "quote_total"
    QUOTE_SUBTOTAL = "quote_subtotal"
    QUOTE_DISCOUNT = "quote_discount"
    VALID_UNTIL = "valid_until"
    ITEMS_TABLE = "items_table"
    NOTES = "notes"

    @classmethod
    def lookup(cls, name: str) -> Optional["Placeholder"]:
        try:
            return cls(name)
        except ValueError:
            return None


# {{ name }}: letters, digits, underscore; whitespace inside the braces is ignored
TOKEN_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def find_tokens(body: str) -> list[str]:
    return TOKEN_RE.findall(body or "")


def unknown_tokens(body: str) -> list[str]:
    """Tokens in body that will render as empty strings. Useful for template editors."""
    seen = []
    for name in find_tokens(body):
        if Placeholder.lookup(name) is None and name not in seen:
            seen.append(name)
    return seen
