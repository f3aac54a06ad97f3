# projects/models.py
import uuid
from django.db import models


class Project(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    owner = models.CharField(max_length=64, db_index=True, editable=False)  # Caller identity
    # Membership is written separately from the Todo row (see TodoRepository.create)
    todos = models.ManyToManyField('Todo', blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)  # Set by the first soft delete

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class Todo(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    status = models.BooleanField(default=False)
    project = models.ForeignKey(
        Project, on_delete=models.PROTECT, related_name='owned_todos', editable=False
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name
