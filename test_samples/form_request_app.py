# Sample controller application for testing the scanner
# Handlers receive validated request classes; some also validate inline.

from app.http import Controller, FormRequest


class BaseUserRequest(FormRequest):
    def rules(self):
        return {
            "email": "required|email",
        }


class UpdateUserRequest(BaseUserRequest):
    def rules(self):
        rules = {
            # Public display name
            "name": "required|string|max:255",
            "email": ["required", "email"],
            "nickname": "nullable|string",
        }
        return rules


class InheritedRulesRequest(BaseUserRequest):
    pass


class DynamicRequest(FormRequest):
    def rules(self):
        return {**BASE_RULES, "extra": "string"}


class UserApiController(Controller):
    def update(self, request: UpdateUserRequest, user_id: int):
        """
        Update a user.

        Replaces the profile fields.
        """
        self.validate(request, {
            "email": "required|string",
            "avatar": "file",
        })
        return {"updated": True}

    def inherited(self, request: "InheritedRulesRequest"):
        return {}

    def dynamic(self, request: DynamicRequest):
        return {}

    def store(self, request):
        """
        Store a user.

        @request CreateUser extra text
        @requestMediaType text/plain
        """
        request.validate({"avatar": "required|file"})
        return {}

    def ping(self):
        return {"pong": True}
