# app/api/feed/routes.py
import json
import logging
import queue

from flask import Blueprint, Response, jsonify, current_app, stream_with_context

from app.api.feed.schemas import FeedEntrySchema
from app.services.identity_service import current_user_id

feed_bp = Blueprint('feed_bp', __name__)

# 변경이 없을 때도 연결이 끊기지 않도록 보내는 keep-alive 주기(초)
STREAM_HEARTBEAT_SECONDS = 15


@feed_bp.route('/', methods=['GET'])
def get_feed():
    """전체 피드를 최신순으로 조회합니다. 조회 실패 시 빈 목록을 반환합니다."""
    feed_service = current_app.services['feed']
    viewer_id = current_user_id()
    entries = feed_service.load_feed(viewer_id)
    return jsonify({"posts": FeedEntrySchema(many=True).dump(entries)}), 200


def _sse(event: str, payload) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


@feed_bp.route('/stream', methods=['GET'])
def stream_feed():
    """
    실시간 피드 (Server-Sent Events).
    변경이 생길 때마다 'feed' 이벤트로 전체 피드를 보냅니다.
    저장소 오류가 나면 빈 'feed' 이벤트와 'error' 이벤트를 차례로 보낸 뒤 종료합니다.
    구독은 첫 응답을 만들 때 시작되고, 클라이언트가 연결을 끊으면 해제됩니다.
    """
    feed_service = current_app.services['feed']
    viewer_id = current_user_id()
    schema = FeedEntrySchema(many=True)

    def generate():
        watch = None
        try:
            watch = feed_service.watch_feed(viewer_id)
            while True:
                try:
                    entries = watch.get(timeout=STREAM_HEARTBEAT_SECONDS)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                if entries is None:
                    return
                yield _sse("feed", {"posts": schema.dump(entries)})
        except Exception as e:
            logging.error(f"실시간 피드 오류 (viewer_id: {viewer_id}): {e}", exc_info=True)
            yield _sse("feed", {"posts": []})
            yield _sse("error", {"error_code": "FEED_STREAM_FAILED", "message": str(e)})
        finally:
            if watch is not None:
                watch.close()

    return Response(stream_with_context(generate()), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})
