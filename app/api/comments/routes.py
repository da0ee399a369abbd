# app/api/comments/routes.py
import json
import logging
import queue
from flask import Blueprint, request, jsonify, Response, current_app, stream_with_context
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from app.core.exceptions import NotFound, PermissionDenied, ValidationFailure


comments_bp = Blueprint('comments_bp', __name__)

# 변경이 없을 때도 연결이 끊기지 않도록 보내는 keep-alive 주기(초)
STREAM_HEARTBEAT_SECONDS = 15

@comments_bp.route('/posts/<string:post_id>/comments', methods=['POST'])
@jwt_required()
def create_comment(post_id: str):
    comment_service = current_app.services['comments']
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    user_id = get_jwt_identity()
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
        new_comment = comment_service.add_comment(post_id, user_id, data['text'])
        return jsonify(CommentResponseSchema().dump(new_comment)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValidationFailure as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": e.message}), 400
    except NotFound as e: # 게시물이 없는 경우
        return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": e.message}), 404
    except Exception as e:
        logging.error(f"댓글 생성 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "COMMENT_CREATION_FAILED", "message": "댓글 생성 중 오류가 발생했습니다."}), 500

@comments_bp.route('/posts/<string:post_id>/comments', methods=['GET'])
@jwt_required(optional=True)
def get_comments(post_id: str):
    comment_service = current_app.services['comments']
    """
    특정 게시글의 댓글 목록을 오래된 순으로 조회합니다.
    """
    try:
        comments = comment_service.list_comments(post_id)
        return jsonify({"comments": CommentResponseSchema(many=True).dump(comments)}), 200
    except Exception as e:
        logging.error(f"댓글 목록 조회 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "댓글 목록 조회 중 오류가 발생했습니다."}), 500


def _sse(event: str, payload) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


@comments_bp.route('/posts/<string:post_id>/comments/stream', methods=['GET'])
@jwt_required(optional=True)
def stream_comments(post_id: str):
    """
    댓글 목록 실시간 구독 (Server-Sent Events).
    변경될 때마다 'comments' 이벤트로 전체 목록(오래된 순)을 보내고, 연결이 끊기면 구독을 해제합니다.
    """
    comment_service = current_app.services['comments']
    schema = CommentResponseSchema(many=True)

    def generate():
        watch = None
        try:
            watch = comment_service.watch_comments(post_id)
            while True:
                try:
                    comments = watch.get(timeout=STREAM_HEARTBEAT_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                if comments is None:
                    return
                yield _sse("comments", {"comments": schema.dump(comments)})
        except Exception as e:
            logging.error(f"실시간 댓글 오류 (post_id: {post_id}): {e}", exc_info=True)
            yield _sse("comments", {"comments": []})
            yield _sse("error", {"error_code": "COMMENT_STREAM_FAILED", "message": str(e)})
        finally:
            if watch is not None:
                watch.cancel()

    return Response(stream_with_context(generate()), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})


@comments_bp.route('/posts/<string:post_id>/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(post_id: str, comment_id: str):
    comment_service = current_app.services['comments']
    """
    특정 댓글을 삭제합니다. (작성자 본인만 가능)
    """
    user_id = get_jwt_identity()
    try:
        comment_service.delete_comment(post_id, comment_id, user_id)
        return Response(status=204)
    except PermissionDenied as e:
        return jsonify({"error_code": "FORBIDDEN", "message": e.message}), 403
    except NotFound as e:
        return jsonify({"error_code": "NOT_FOUND", "message": e.message}), 404
