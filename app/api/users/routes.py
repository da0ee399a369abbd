# app/api/users/routes.py
import logging
from dataclasses import asdict
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.api.users.schemas import ProfileUpdateSchema, LocationUpdateSchema, UserProfileResponseSchema
from app.core.exceptions import NotFound, ValidationFailure
from app.models.geo import Coordinate

users_bp = Blueprint('users_bp', __name__)

PRIVATE_FIELDS = ('location', 'last_location_update')


def _dump_profile(profile, post_count=None, include_private=False):
    data = asdict(profile)
    if post_count is not None:
        data['post_count'] = post_count
    exclude = () if include_private else PRIVATE_FIELDS
    return UserProfileResponseSchema(exclude=exclude).dump(data)


@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    """현재 로그인된 사용자의 펫 프로필(위치 포함)을 조회합니다."""
    user_service = current_app.services['users']
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        profile = user_service.get_profile(user_id)
    except NotFound:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "프로필이 아직 없습니다."}), 404
    return jsonify(_dump_profile(profile, post_service.count_posts_by_user(user_id), include_private=True)), 200


@users_bp.route('/me', methods=['PUT'])
@jwt_required()
def save_my_profile():
    """
    펫 프로필을 저장합니다. 전달된 필드만 병합되며, 문서가 없으면 새로 생성됩니다.
    """
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = ProfileUpdateSchema().load(request.get_json(silent=True) or {})
        profile = user_service.save_profile(user_id, data)
        return jsonify(_dump_profile(profile, include_private=True)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValidationFailure as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": e.message}), 400


@users_bp.route('/me/avatar', methods=['PUT'])
@jwt_required()
def upload_my_avatar():
    """multipart 'image' 필드의 이미지를 아바타로 업로드합니다."""
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    image = request.files.get('image')
    if image is None or not image.filename:
        return jsonify({"error_code": "INVALID_PAYLOAD", "message": "'image' 파일이 필요합니다."}), 400
    try:
        profile = user_service.upload_avatar(user_id, image.read(), image.mimetype or "image/jpeg")
        return jsonify(_dump_profile(profile, include_private=True)), 200
    except Exception as e:
        logging.error(f"아바타 업로드 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "AVATAR_UPLOAD_FAILED", "message": "아바타 업로드 중 서버 오류가 발생했습니다."}), 500


@users_bp.route('/me/location', methods=['PUT'])
@jwt_required()
def update_my_location():
    """마지막으로 알려진 위치를 갱신합니다."""
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = LocationUpdateSchema().load(request.get_json(silent=True) or {})
        user_service.update_location(user_id, Coordinate(data['latitude'], data['longitude']))
        return jsonify(_dump_profile(user_service.get_profile(user_id), include_private=True)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValidationFailure as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": e.message}), 400


@users_bp.route('/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필 정보(게시물 수 포함)를 조회합니다. 위치 정보는 제외됩니다."""
    user_service = current_app.services['users']
    post_service = current_app.services['posts']
    try:
        profile = user_service.get_profile(user_id)
    except NotFound:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
    include_private = get_jwt_identity() == user_id
    return jsonify(_dump_profile(profile, post_service.count_posts_by_user(user_id), include_private)), 200
