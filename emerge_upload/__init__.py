"""Package iOS build artifacts and upload them to Emerge for analysis."""

__version__ = "0.1.0"
