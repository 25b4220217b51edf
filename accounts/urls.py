from django.urls import path

from . import views

urlpatterns = [
    path("signup", views.SignUpView.as_view(), name="auth-signup"),
    path("login", views.LogInView.as_view(), name="auth-login"),
    path("logout", views.LogOutView.as_view(), name="auth-logout"),
    path("refresh", views.RefreshView.as_view(), name="auth-refresh"),
    path("forgot-password", views.ForgotPasswordView.as_view(), name="auth-forgot-password"),
    path("reset-password", views.ResetPasswordView.as_view(), name="auth-reset-password"),
]
