"""MarketLens: document-grounded customer segmentation and synthetic focus groups."""

__version__ = "0.4.0"
