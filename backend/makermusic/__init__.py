from .app import configure_logging, create_app, run

__all__ = ["configure_logging", "create_app", "run"]
