"""Backend services for the gigtax application."""
