# app/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from marshmallow import ValidationError

from app.api.auth.schemas import SignUpSchema, SignInSchema, PasswordResetSchema, LogoutRequestSchema
from app.core.exceptions import AuthRequired, NetworkFailure, ValidationFailure

auth_bp = Blueprint('auth_bp', __name__)


def _issue_tokens(user_id: str) -> dict:
    return {
        "access_token": create_access_token(identity=user_id),
        "refresh_token": create_refresh_token(identity=user_id),
        "user_id": user_id,
    }


@auth_bp.route('/signup', methods=['POST'])
def sign_up():
    """이메일/비밀번호 회원가입. 빈 펫 프로필을 만들고 토큰을 발급합니다."""
    auth_service = current_app.services['auth']
    try:
        data = SignUpSchema().load(request.get_json(silent=True) or {})
        user_id = auth_service.sign_up(data['email'], data['password'])
        return jsonify(_issue_tokens(user_id)), 201
    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except ValidationFailure as e:
        return jsonify({"error_code": "SIGNUP_REJECTED", "message": e.message}), 409
    except NetworkFailure as e:
        return jsonify({"error_code": "NETWORK_FAILURE", "message": e.message}), 503


@auth_bp.route('/signin', methods=['POST'])
def sign_in():
    """이메일/비밀번호 로그인."""
    auth_service = current_app.services['auth']
    try:
        data = SignInSchema().load(request.get_json(silent=True) or {})
        user_id = auth_service.sign_in(data['email'], data['password'])
        return jsonify(_issue_tokens(user_id)), 200
    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except AuthRequired as e:
        return jsonify({"error_code": "INVALID_CREDENTIALS", "message": e.message}), 401
    except NetworkFailure as e:
        return jsonify({"error_code": "NETWORK_FAILURE", "message": e.message}), 503


@auth_bp.route('/password-reset', methods=['POST'])
def password_reset():
    """비밀번호 재설정 메일을 보냅니다. 계정 존재 여부와 관계없이 같은 응답을 돌려줍니다."""
    auth_service = current_app.services['auth']
    try:
        data = PasswordResetSchema().load(request.get_json(silent=True) or {})
        auth_service.send_password_reset(data['email'])
        return jsonify({"message": "비밀번호 재설정 메일을 보냈습니다."}), 200
    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except NetworkFailure as e:
        return jsonify({"error_code": "NETWORK_FAILURE", "message": e.message}), 503


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True) # Refresh Token만 허용하는 데코레이터
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user_id)
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json(silent=True) or {})

        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        # 만료된 토큰도 해독할 수 있도록 서명만 검증합니다.
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(decoded_access['jti'], decoded_access['exp'],
                                 decoded_refresh['jti'], decoded_refresh['exp'])
        return jsonify({"message": "로그아웃 되었습니다."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
