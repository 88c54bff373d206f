from backoffice.app import create_app

__all__ = ["create_app"]
