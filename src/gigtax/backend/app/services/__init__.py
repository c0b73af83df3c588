"""Service layer modules for the GigTax backend."""
