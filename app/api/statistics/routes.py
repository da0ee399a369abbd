# app/api/statistics/routes.py
from flask import Blueprint, jsonify, current_app

from app.api.statistics.schemas import UserStatisticsSchema
from app.services.identity_service import require_user_id

statistics_bp = Blueprint('statistics_bp', __name__)


@statistics_bp.route('/me', methods=['GET'])
def get_my_statistics():
    """내 활동 통계와 업적 목록을 조회합니다."""
    statistics_service = current_app.services['statistics']
    stats = statistics_service.get_statistics(require_user_id())
    return jsonify(UserStatisticsSchema().dump(stats)), 200
