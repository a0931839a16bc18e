"""bidflow: quote pricing, proposal rendering and versioning core."""

__version__ = "0.1.0"
