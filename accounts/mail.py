from django.conf import settings
from django.core.mail import send_mail


def send_password_reset_mail(recipient_email, reset_password_url):
    send_mail(
        subject="Password Reset",
        message=f"Go to the following link to reset your password: {reset_password_url}",
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[recipient_email],
        html_message=f"<b>Go to the following link to reset your password:</b> {reset_password_url}",
    )
