# ORM models for bidflow

from .activity import ActivityEntry
from .client import Client
from .company_settings import CompanySettings
from .proposal_template import ProposalTemplate
from .quote import Quote, QuoteItem
from .quote_acceptance import QuoteAcceptance
from .quote_version import QuoteVersion

__all__ = [
    "ActivityEntry",
    "Client",
    "CompanySettings",
    "ProposalTemplate",
    "Quote",
    "QuoteItem",
    "QuoteAcceptance",
    "QuoteVersion",
]
