"""Configuration: section models, settings sources, logging setup."""
