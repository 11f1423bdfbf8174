"""Command-line interface for lottiegraph."""
