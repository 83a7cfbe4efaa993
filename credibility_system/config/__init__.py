"""Configuration: environment settings, logging setup and scoring constants."""
