"""WSGI entrypoint for Passenger-style hosting of the GigTax backend."""

from gigtax.backend.app import create_app

# Passenger expects a module-level variable named ``application``.
application = create_app()
