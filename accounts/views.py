# accounts/views.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from todo_service.exceptions import Conflict
from .authentication import issue_token
from .models import User
from .serializers import LoginSerializer, RegisterSerializer

logger = logging.getLogger(__name__)


class RegisterView(APIView):
    """
    Register a new user.

    Request Body:
        name, email, password, mobile

    Returns:
        Response: {"success": true, "message": ...} with HTTP 201, or HTTP 409
        when the email or mobile number is already taken.
    """

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        mobile = serializer.validated_data['mobile']

        if User.objects.filter(Q(email=email) | Q(mobile=mobile)).exists():
            raise Conflict('Email or mobile number already exists')
        try:
            with transaction.atomic():
                user = serializer.save()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            raise Conflict('Email or mobile number already exists', cause=e) from e

        logger.info("Registered user %s", user.pk)
        return Response(
            {'success': True, 'message': 'User registered successfully'},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    Exchange email and password for a bearer token.

    Returns:
        Response: {"success": true, "access_token": "<jwt>"}; HTTP 401 on bad
        credentials.
    """

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(email=serializer.validated_data['email']).first()
        if user is None:
            raise AuthenticationFailed('Invalid email address')
        if not user.check_password(serializer.validated_data['password']):
            raise AuthenticationFailed('Invalid password')

        return Response({'success': True, 'access_token': issue_token(user)})
