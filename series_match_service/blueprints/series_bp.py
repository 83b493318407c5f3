"""Series lookup and feedback endpoints."""
import azure.functions as func
import logging
import json

from series_match_service.errors import InvalidSeedReferenceError, SeriesLookupError
from series_match_service.services import FeedbackIngestor, SeriesFinderService

# Initialize blueprint
bp = func.Blueprint()

# Initialize services (singleton pattern)
series_service = SeriesFinderService()
feedback_ingestor = FeedbackIngestor(
    corpus_store=series_service.corpus_store,
    catalog_client=series_service.catalog_client
)

logger = logging.getLogger(__name__)


def _json_response(body: dict, status_code: int) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, default=str),
        status_code=status_code,
        mimetype="application/json"
    )


def _get_json_body(req: func.HttpRequest) -> dict | None:
    try:
        body = req.get_json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


@bp.route(route="series/find", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def find_series(req: func.HttpRequest) -> func.HttpResponse:
    """
    Find the other parts of a video's series.

    Body:
        - url: Video URL or ID
    """
    try:
        body = _get_json_body(req)
        if body is None or not body.get('url'):
            return _json_response({"error": "url is required"}, 400)

        try:
            matches = series_service.find_series(body['url'])
        except InvalidSeedReferenceError as e:
            return _json_response({"error": str(e)}, 400)
        except SeriesLookupError as e:
            logger.warning(f"Could not analyze video: {e}")
            return _json_response({"error": "Could not analyze this video", "detail": str(e)}, 502)

        response = {
            "count": len(matches),
            "results": [m.to_dict() for m in matches]
        }
        if not matches:
            response["message"] = "No series match found for this video"

        return _json_response(response, 200)

    except Exception as e:
        logger.error(f"Error finding series: {str(e)}", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)


@bp.route(route="feedback", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def submit_feedback(req: func.HttpRequest) -> func.HttpResponse:
    """
    Record a thumbs up / thumbs down on a match.

    Body:
        - video_id: Judged video
        - is_relevant: true for thumbs up
        - title: Video title
        - seed_video_id: Optional seed video
    """
    try:
        body = _get_json_body(req)
        if body is None or not body.get('video_id'):
            return _json_response({"error": "video_id is required"}, 400)

        is_relevant = body.get('is_relevant')
        if not isinstance(is_relevant, bool):
            return _json_response({"error": "is_relevant must be a boolean"}, 400)

        feedback_ingestor.submit(
            candidate_id=body['video_id'],
            is_relevant=is_relevant,
            title=body.get('title') or '',
            seed_id=body.get('seed_video_id')
        )

        return _json_response({"status": "accepted", "video_id": body['video_id']}, 202)

    except Exception as e:
        logger.error(f"Error submitting feedback: {str(e)}", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)


@bp.route(route="videos/{video_id}/feedback", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_feedback_status(req: func.HttpRequest) -> func.HttpResponse:
    """Get feedback status for a video."""
    try:
        video_id = req.route_params.get('video_id')
        if not video_id:
            return _json_response({"error": "video_id is required"}, 400)

        status = feedback_ingestor.status(video_id)
        return _json_response({"video_id": video_id, **status}, 200)

    except Exception as e:
        logger.error(f"Error getting feedback status: {str(e)}", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)


# noinspection PyUnusedLocal
@bp.route(route="feedback/stats", methods=["GET"])
def get_feedback_stats(req: func.HttpRequest) -> func.HttpResponse:
    """
    Get feedback statistics.
    """
    try:
        return _json_response(feedback_ingestor.stats(), 200)

    except Exception as e:
        logger.error(f"Error getting stats: {str(e)}", exc_info=True)
        return _json_response({"error": "Internal server error"}, 500)


# noinspection PyUnusedLocal
@bp.route(route="series/health", methods=["GET"])
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint."""
    return _json_response({
        "status": "healthy",
        "service": "series-match-service",
        "version": "1.0.0"
    }, 200)
