from .activity import list_activity, record_activity
from .public_quote import PublicQuoteView, download_public_proposal, get_public_quote, respond_to_quote
from .workflow import change_status, ensure_share_link, public_url, transition_status

__all__ = [
    "list_activity",
    "record_activity",
    "PublicQuoteView",
    "download_public_proposal",
    "get_public_quote",
    "respond_to_quote",
    "change_status",
    "ensure_share_link",
    "public_url",
    "transition_status",
]
