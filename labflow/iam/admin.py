from django.contrib import admin

from labflow.iam.models import UserProfile, UserSession


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ("username", "login_time", "last_activity", "user_agent")
    search_fields = ("username",)
    readonly_fields = ("username", "session_id", "login_time", "last_activity", "user_agent")


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "phone")
    search_fields = ("user__username", "phone")
