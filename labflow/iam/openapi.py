from drf_spectacular.extensions import OpenApiAuthenticationExtension


class SessionHeaderAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "labflow.iam.auth.SessionHeaderAuthentication"
    name = "SessionHeaders"

    def get_security_definition(self, auto_schema):
        # OpenAPI has no two-header scheme; document the session id and
        # describe the companion username header.
        return {
            "type": "apiKey",
            "in": "header",
            "name": "X-Session-Id",
            "description": (
                "Session id returned by POST /auth/login/. "
                "Send together with `X-Username: <username>`."
            ),
        }
