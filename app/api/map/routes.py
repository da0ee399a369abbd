# app/api/map/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from app.api.map.schemas import NearbyQuerySchema, LocationPostSchema
from app.core.exceptions import ValidationFailure
from app.models.geo import Coordinate

map_bp = Blueprint('map_bp', __name__)


@map_bp.route('/nearby', methods=['GET'])
@jwt_required(optional=True)
def get_nearby_posts():
    """
    근처 게시물 조회.
    ?lat=&lng=&radius_km= (radius_km 생략 시 기본 반경)
    """
    map_service = current_app.services['map']
    try:
        args = NearbyQuerySchema().load(request.args.to_dict())
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    center = Coordinate(args['lat'], args['lng']) if args['lat'] is not None else None
    try:
        posts = map_service.load_nearby(center, args['radius_km'])
    except ValidationFailure as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": e.message}), 400
    return jsonify({"posts": LocationPostSchema(many=True).dump(posts)}), 200
