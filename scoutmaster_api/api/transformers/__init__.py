"""Report format transformers."""
