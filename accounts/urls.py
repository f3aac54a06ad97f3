from django.urls import path
from .views import LoginView, RegisterView

urlpatterns = [
    path('users/register', RegisterView.as_view(), name='register'),
    path('auth/login', LoginView.as_view(), name='login'),
]
