"""Report routes for the dashboard.

Every endpoint is a read-only JSON view over the AnalyticsService.
Filterable endpoints accept ``from``, ``to`` (ISO dates, inclusive) and
``project`` query parameters.
"""

import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from burnrate.models.session import Filters
from burnrate.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _get_analytics() -> AnalyticsService:
    """Get the analytics service from app extensions (shared instance)."""
    analytics = current_app.extensions.get("analytics")
    if analytics is None:
        logger.warning("AnalyticsService not in extensions, creating new instance")
        analytics = AnalyticsService(current_app.extensions.get("config"))
        current_app.extensions["analytics"] = analytics
    return analytics


def parse_filters() -> Filters | None:
    """Filters from the query string, or None when none are given."""
    from_date = request.args.get("from") or None
    to_date = request.args.get("to") or None
    project = request.args.get("project") or None
    if not (from_date or to_date or project):
        return None
    return Filters(from_date=from_date, to_date=to_date, project=project)


def json_errors(f):
    """Turn any exception raised by a route into a 500 JSON error."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except Exception as e:
            logger.exception(f"[API] {request.path} failed: {e}")
            return jsonify({"error": str(e)}), 500

    return wrapper


def _dump(value):
    if isinstance(value, list):
        return [item.to_json_dict() for item in value]
    return value.to_json_dict()


@api_bp.route("/overview", methods=["GET"])
@json_errors
def overview():
    return jsonify(_dump(_get_analytics().get_overview(parse_filters())))


@api_bp.route("/sessions", methods=["GET"])
@json_errors
def sessions():
    return jsonify(_dump(_get_analytics().get_sessions(parse_filters())))


@api_bp.route("/projects", methods=["GET"])
@json_errors
def projects():
    return jsonify(_dump(_get_analytics().get_projects(parse_filters())))


@api_bp.route("/projects-list", methods=["GET"])
@json_errors
def projects_list():
    """Distinct project paths, for the dashboard's project filter."""
    return jsonify(_get_analytics().get_project_list())


@api_bp.route("/branch-costs", methods=["GET"])
@json_errors
def branch_costs():
    return jsonify(_dump(_get_analytics().get_branch_costs(parse_filters())))


@api_bp.route("/tool-usage", methods=["GET"])
@json_errors
def tool_usage():
    return jsonify(_dump(_get_analytics().get_tool_usage(parse_filters())))


@api_bp.route("/patterns", methods=["GET"])
@json_errors
def patterns():
    return jsonify(_dump(_get_analytics().get_patterns(parse_filters())))


@api_bp.route("/insights", methods=["GET"])
@json_errors
def insights():
    return jsonify(_dump(_get_analytics().get_insights(parse_filters())))


@api_bp.route("/advanced-insights", methods=["GET"])
@json_errors
def advanced_insights():
    """ROI, context-window and retry insights over all sessions.

    Scans every session log, so it ignores filters.
    """
    return jsonify(_dump(_get_analytics().get_advanced_insights()))


@api_bp.route("/expensive-prompts", methods=["GET"])
@json_errors
def expensive_prompts():
    return jsonify(_dump(_get_analytics().get_expensive_prompts(parse_filters())))


@api_bp.route("/recommendations", methods=["GET"])
@json_errors
def recommendations():
    return jsonify(_dump(_get_analytics().get_recommendations(parse_filters())))


@api_bp.route("/gamification", methods=["GET"])
@json_errors
def gamification():
    return jsonify(_dump(_get_analytics().get_gamification(parse_filters())))


@api_bp.route("/contributions", methods=["GET"])
@json_errors
def contributions():
    return jsonify(_dump(_get_analytics().get_contributions()))


@api_bp.route("/security", methods=["GET"])
@json_errors
def security():
    """Full-corpus security audit. Filters do not apply."""
    return jsonify(_dump(_get_analytics().get_security_audit()))
