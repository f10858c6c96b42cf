"""Web API for the changelog tree and graph."""

from depdelta.web.app import create_app

__all__ = ["create_app"]
