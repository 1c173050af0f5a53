from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "labflow.iam"

    def ready(self) -> None:
        # import here so app loading doesn't break tooling
        from labflow.iam import openapi  # noqa: F401
        from labflow.iam.services.sessions import build_session_store

        self.session_store = build_session_store()
