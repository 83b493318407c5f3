import azure.functions as func

from series_match_service.blueprints import series_bp
from series_match_service.models.database import init_db

init_db()

app = func.FunctionApp()

app.register_blueprint(series_bp)
