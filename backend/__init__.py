"""Stateless OAuth backend for the FetchIt app."""
