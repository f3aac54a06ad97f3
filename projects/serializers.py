from rest_framework import serializers
from .models import Project, Todo
from .repositories import TodoRepository


class TodoSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Todo
        fields = ['id', 'name', 'description', 'status', 'project', 'created_at', 'updated_at', 'is_deleted']
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    todos = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = ['id', 'title', 'owner', 'created_at', 'is_deleted', 'todos']
        read_only_fields = fields

    def get_todos(self, obj):
        # Populated by the repositories; bare instances are looked up
        todos = getattr(obj, 'active_todos', None)
        if todos is None:
            todos = TodoRepository().list_for_project(obj.pk)
        return TodoSerializer(todos, many=True).data


# Request bodies

class ProjectTitleSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, allow_blank=False, trim_whitespace=True)


class AddTodoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, allow_blank=False)
    description = serializers.CharField(allow_blank=True, required=False, default='')


class TodoStatusSerializer(serializers.Serializer):
    status = serializers.BooleanField()


class UpdateTodoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, allow_blank=False, required=False)
    description = serializers.CharField(allow_blank=True, required=False)
