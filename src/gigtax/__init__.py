"""Tax compliance backend for South African gig workers and creators."""
