"""Command-line interface for bendsync."""
