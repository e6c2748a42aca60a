from lastmile_server.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
