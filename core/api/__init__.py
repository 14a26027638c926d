from .app import ApiHandlers, create_api_app

__all__ = ["ApiHandlers", "create_api_app"]
