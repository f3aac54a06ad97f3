# projects/views.py
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authentication import caller_identity
from .serializers import (
    AddTodoSerializer,
    ProjectSerializer,
    ProjectTitleSerializer,
    TodoSerializer,
    TodoStatusSerializer,
    UpdateTodoSerializer,
)
from .services import ProjectService


class ProjectServiceView(APIView):
    """
    Base view: validates request bodies with DRF serializers and delegates the
    work to ProjectService. ServiceError subclasses raised by the service are
    rendered by todo_service.exceptions.service_exception_handler.
    """

    service_class = ProjectService

    def get_service(self):
        return self.service_class()

    def validated(self, serializer_class, request):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def owner_identity(self, request, user_id):
        """
        Return the caller identity, refusing owner-scoped routes whose path
        names someone else.
        """
        identity = caller_identity(request)
        if str(user_id) != identity:
            raise PermissionDenied('Cannot access projects of another user')
        return identity


class OwnerProjectsView(ProjectServiceView):

    def get(self, request, user_id):
        """
        List the caller's active projects, newest first, with their todos.

        Returns:
            Response: {"success": true, "projects": [...]}
        """
        identity = self.owner_identity(request, user_id)
        projects = self.get_service().list_projects(identity)
        return Response({'success': True, 'projects': ProjectSerializer(projects, many=True).data})

    def post(self, request, user_id):
        """
        Create a project owned by the caller.

        Request Body:
            title (str): non-empty project title.

        Returns:
            Response: {"success": true, "project": {...}} with HTTP 201.
        """
        identity = self.owner_identity(request, user_id)
        data = self.validated(ProjectTitleSerializer, request)
        project = self.get_service().create_project(identity, data['title'])
        return Response(
            {'success': True, 'project': ProjectSerializer(project).data},
            status=status.HTTP_201_CREATED,
        )


class DeletedProjectsView(ProjectServiceView):

    def get(self, request, user_id):
        identity = self.owner_identity(request, user_id)
        projects = self.get_service().list_deleted_projects(identity)
        return Response({'success': True, 'projects': ProjectSerializer(projects, many=True).data})


class UpdateProjectView(ProjectServiceView):

    def put(self, request, project_id):
        data = self.validated(ProjectTitleSerializer, request)
        project = self.get_service().update_project(project_id, data['title'])
        return Response({'success': True, 'project': ProjectSerializer(project).data})


class DeleteProjectView(ProjectServiceView):

    def delete(self, request, project_id):
        """
        Soft-delete a project. Unknown or already-deleted ids are not errors.

        Returns:
            Response: {"success": true, "projects": [...]} with the caller's
            remaining active projects.
        """
        projects = self.get_service().delete_project(caller_identity(request), project_id)
        return Response({'success': True, 'projects': ProjectSerializer(projects, many=True).data})


class ProjectDetailView(ProjectServiceView):

    def get(self, request, project_id):
        project = self.get_service().get_project_by_id(project_id)
        return Response({'success': True, 'project': ProjectSerializer(project).data})


class ProjectTodosView(ProjectServiceView):

    def post(self, request, project_id):
        """
        Add a todo to a project.

        Request Body:
            name (str): non-empty todo name.
            description (str, optional): free text, may be empty.

        Returns:
            Response: {"success": true, "todo": {...}} with HTTP 201.
        """
        data = self.validated(AddTodoSerializer, request)
        todo = self.get_service().add_todo_to_project(project_id, data['name'], data['description'])
        return Response({'success': True, 'todo': TodoSerializer(todo).data}, status=status.HTTP_201_CREATED)


class DeletedTodosView(ProjectServiceView):

    def get(self, request, project_id):
        todos = self.get_service().list_deleted_todos(project_id)
        return Response({'success': True, 'todos': TodoSerializer(todos, many=True).data})


class TodoView(ProjectServiceView):

    def put(self, request, todo_id):
        data = self.validated(TodoStatusSerializer, request)
        todo = self.get_service().update_todo_status(todo_id, data['status'])
        return Response({'success': True, 'todo': TodoSerializer(todo).data})

    def delete(self, request, todo_id):
        self.get_service().delete_todo(todo_id)
        return Response({'success': True})


class UpdateTodoView(ProjectServiceView):

    def put(self, request, todo_id):
        data = self.validated(UpdateTodoSerializer, request)
        todo = self.get_service().update_todo(
            todo_id, name=data.get('name'), description=data.get('description')
        )
        return Response({'success': True, 'updatedTodo': TodoSerializer(todo).data})


class ExportProjectView(ProjectServiceView):

    def get(self, request, project_id):
        """
        Export the project summary to a secret gist.

        Returns:
            Response: {"success": true, "gistUrl": "https://gist.github.com/..."}
        """
        gist_url = self.get_service().export_project_summary(project_id)
        return Response({'success': True, 'gistUrl': gist_url})
