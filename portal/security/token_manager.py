# portal/security/token_manager.py
from flask_jwt_extended import (
    create_access_token, create_refresh_token, set_access_cookies, set_refresh_cookies, unset_jwt_cookies,
)

# JWT session tokens carrying the user's role as a claim


class TokenManager:
    def issue_tokens(self, user_id: str, role: str) -> dict:
        claims = {"role": role}
        return {
            "access_token": create_access_token(identity=str(user_id), additional_claims=claims),
            "refresh_token": create_refresh_token(identity=str(user_id), additional_claims=claims),
        }

    def attach_cookies(self, response, tokens: dict):
        set_access_cookies(response, tokens["access_token"])
        set_refresh_cookies(response, tokens["refresh_token"])
        return response

    def clear_cookies(self, response):
        unset_jwt_cookies(response)
        return response
