"""Year-of-assessment configuration loading and validation."""
