"""
Entry point for running Brand Metrics as a module.

Enables execution via:
    python -m brand_metrics [command] [options]

This is equivalent to running the installed CLI:
    brand-metrics [command] [options]

Examples:
    python -m brand_metrics --help
    python -m brand_metrics extract --input examples/responses.jsonl --output extractions.jsonl
    python -m brand_metrics validate --config examples/metrics.config.yaml
"""

from brand_metrics.cli import app

if __name__ == "__main__":
    app()
