"""Configuration and logging for the upload tool."""
