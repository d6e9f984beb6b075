"""Command line interface for layerscan."""
