# todo_service/urls.py
from django.urls import include, path

urlpatterns = [
    path('projects/', include('projects.urls')),
    path('', include('accounts.urls')),
]
