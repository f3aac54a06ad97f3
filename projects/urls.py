# projects/urls.py
from django.urls import path
from .views import (
    DeletedProjectsView,
    DeletedTodosView,
    DeleteProjectView,
    ExportProjectView,
    OwnerProjectsView,
    ProjectDetailView,
    ProjectTodosView,
    TodoView,
    UpdateProjectView,
    UpdateTodoView,
)

urlpatterns = [
    path('updateproject/<str:project_id>', UpdateProjectView.as_view(), name='update-project'),
    path('deleteproject/<str:project_id>', DeleteProjectView.as_view(), name='delete-project'),
    path('projectsbyid/<str:project_id>', ProjectDetailView.as_view(), name='project-detail'),
    path('get_deleted_project/<str:user_id>', DeletedProjectsView.as_view(), name='deleted-projects'),
    path('get_deleted/<str:project_id>', DeletedTodosView.as_view(), name='deleted-todos'),
    path('todos/<str:todo_id>', TodoView.as_view(), name='todo'),
    path('update/<str:todo_id>', UpdateTodoView.as_view(), name='update-todo'),
    path('<str:project_id>/todos', ProjectTodosView.as_view(), name='project-todos'),
    path('<str:project_id>/export', ExportProjectView.as_view(), name='export-project'),
    path('<str:user_id>', OwnerProjectsView.as_view(), name='owner-projects'),
]
