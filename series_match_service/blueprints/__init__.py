"""Azure Functions blueprints"""

from series_match_service.blueprints.series_bp import bp as series_bp

__all__ = ["series_bp"]
