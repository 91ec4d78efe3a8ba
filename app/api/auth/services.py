# app/api/auth/services.py
import uuid
import logging
from typing import Dict, Any, Tuple

from app.core.exceptions import AuthenticationError, ConflictError
from app.core.security import hash_password, verify_password, issue_access_token
from app.models.user import User
from app.repositories import UserRepository

class AuthService:
    """이메일/비밀번호 기반 회원가입과 로그인을 담당합니다. 토큰은 flask_jwt_extended로 발급합니다."""

    def __init__(self, user_repository: UserRepository):
        self.users = user_repository

    def signup(self, username: str, email: str, password: str, full_name: str) -> Tuple[User, str]:
        """
        새 사용자를 만들고 (사용자, access_token)을 반환합니다.
        이메일과 username은 대소문자를 구분하지 않고 중복 검사합니다.
        """
        email = email.strip().lower()
        if self.users.find_by_email(email):
            raise ConflictError("Email already registered", error_code="EMAIL_TAKEN")
        if self.users.find_by_username(username):
            raise ConflictError("Username already taken", error_code="USERNAME_TAKEN")

        new_user = User(
            user_id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password),
            full_name=full_name.strip(),
        )
        self.users.create(new_user)
        logging.info(f"신규 사용자 가입 완료 (user_id: {new_user.user_id})")
        return new_user, issue_access_token(new_user.user_id)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        # 존재하지 않는 이메일과 틀린 비밀번호는 같은 메시지로 응답합니다.
        user = self.users.find_by_email(email.strip())
        if user is None or not verify_password(user.password_hash, password):
            raise AuthenticationError("Invalid email or password", error_code="INVALID_CREDENTIALS")
        logging.info(f"로그인 성공 (user_id: {user.user_id})")
        return user, issue_access_token(user.user_id)

    def me(self, actor_id: str) -> Dict[str, Any]:
        """요청자 본인의 프로필. 공개 요약에 email 등 본인만 볼 수 있는 필드를 더합니다."""
        user = self.users.get(actor_id)
        if user is None:
            raise AuthenticationError("User not found for this token", error_code="UNKNOWN_ACTOR")
        profile = user.summary()
        profile.update({
            "email": user.email,
            "cover_photo": user.cover_photo,
            "followers_count": len(user.followers),
            "following_count": len(user.following),
            "created_at": user.created_at,
        })
        return profile
