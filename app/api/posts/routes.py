# app/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.api.posts.schemas import (
    PostCreateSchema, PostUpdateSchema, LikeResponseSchema, DeletionResponseSchema, dump_post
)
from app.core.exceptions import NotFound, PermissionDenied, ValidationFailure

posts_bp = Blueprint('posts_bp', __name__)

ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/png', 'image/heic', 'image/webp'}


@posts_bp.route('/', methods=['POST'])
@jwt_required()
def create_post():
    post_service = current_app.services['posts']
    """
    새로운 게시글을 생성합니다.
    - multipart/form-data: text, latitude, longitude, location_name, image(파일)
    - application/json: 이미지 없이 텍스트/위치만 게시할 때 사용합니다.
    """
    user_id = get_jwt_identity()
    if request.mimetype == 'multipart/form-data':
        payload = request.form.to_dict()
        image = request.files.get('image')
    else:
        payload = request.get_json(silent=True) or {}
        image = None

    try:
        data = PostCreateSchema().load(payload)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    image_data, content_type = None, "image/jpeg"
    if image is not None and image.filename:
        content_type = image.mimetype or content_type
        if content_type not in ALLOWED_IMAGE_TYPES:
            return jsonify({"error_code": "UNSUPPORTED_IMAGE_TYPE", "message": f"지원하지 않는 이미지 형식입니다: {content_type}"}), 400
        image_data = image.read()

    try:
        new_post = post_service.create_post(
            user_id, data['text'],
            image_data=image_data, content_type=content_type,
            location=data['location'], location_name=data.get('location_name')
        )
        return jsonify(dump_post(new_post, user_id)), 201
    except ValidationFailure as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": e.message}), 400
    except Exception as e:
        logging.error(f"게시글 생성 중 오류 발생 (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "POST_CREATION_FAILED", "message": "게시글 생성 중 오류가 발생했습니다."}), 500


@posts_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_posts():
    """내 게시물 목록. ?sort=newest|oldest|most_liked"""
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    sort = request.args.get('sort', 'newest', type=str)
    posts = post_service.get_posts_by_user(user_id, sort=sort)
    return jsonify({
        "posts": [dump_post(post, user_id) for post in posts],
        "total_likes": sum(post.likes for post in posts)
    }), 200


@posts_bp.route('/users/<string:author_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_posts(author_id: str):
    """특정 사용자가 작성한 게시물 목록을 조회합니다."""
    post_service = current_app.services['posts']
    viewer_id = get_jwt_identity()
    sort = request.args.get('sort', 'newest', type=str)
    try:
        posts = post_service.get_posts_by_user(author_id, sort=sort)
        return jsonify({"posts": [dump_post(post, viewer_id) for post in posts]}), 200
    except Exception as e:
        logging.error(f"사용자 게시물 목록 조회 중 오류 발생 (author_id: {author_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "게시물 목록 조회 중 오류가 발생했습니다."}), 500


@posts_bp.route('/<string:post_id>', methods=['GET'])
@jwt_required(optional=True)
def get_post(post_id: str):
    """
    특정 게시글의 상세 정보를 조회합니다.
    """
    post_service = current_app.services['posts']
    viewer_id = get_jwt_identity()
    try:
        post = post_service.get_post(post_id)
    except NotFound:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없습니다."}), 404
    return jsonify(dump_post(post, viewer_id)), 200


@posts_bp.route('/<string:post_id>', methods=['PATCH'])
@jwt_required()
def update_post(post_id: str):
    """
    특정 게시글의 내용을 수정합니다. (작성자 본인만 가능)
    """
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        data = PostUpdateSchema().load(request.get_json(silent=True) or {})
        updated_post = post_service.update_post_text(post_id, user_id, data['text'])
        return jsonify(dump_post(updated_post, user_id)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionDenied as e:
        return jsonify({"error_code": "FORBIDDEN", "message": e.message}), 403
    except NotFound as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": e.message}), 404


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """
    특정 게시글을 삭제합니다. (작성자 본인만 가능)
    - 이미지 -> 댓글(페이지 단위 배치) -> 게시물 문서 순으로 삭제합니다.
    - 이미지/댓글 정리 실패는 warnings 로만 전달되고, 문서 삭제 실패만 오류로 응답합니다.
    """
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        result = post_service.delete_post(post_id, user_id)
        return jsonify(DeletionResponseSchema().dump(result)), 200
    except PermissionDenied as e:
        return jsonify({"error_code": "FORBIDDEN", "message": e.message}), 403
    except NotFound as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": e.message}), 404


@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def toggle_post_like(post_id: str):
    """
    게시글의 좋아요를 누르거나 취소합니다.
    응답의 is_liked/likes 로 클라이언트는 낙관적 상태를 확정하고, 오류 응답이면 원복합니다.
    """
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        result = post_service.toggle_like(post_id, user_id)
        return jsonify(LikeResponseSchema().dump(result)), 200
    except NotFound as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": e.message}), 404
