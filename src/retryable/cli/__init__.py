"""Command-line interface for retryable."""
