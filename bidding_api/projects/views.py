from rest_framework import views as drf_views, generics, permissions, status
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework_simplejwt.authentication import JWTAuthentication
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi


from accounts.permissions import IsBuyer, IsSeller
from accounts.serializers import PublicUserSerializer
from . import serializers as my_serializers
from .filters import OpenProjectFilter
from .models import Project, Bid
from .pagination import ProjectListPagination
from .permissions import IsSelfOrStaff
from .services import ProjectLifecycleService


PROJECT_DETAIL_QUERYSET = Project.objects.select_related(
    'buyer',
    'selected_bid',
    'selected_bid__seller',
    'deliverable',
).prefetch_related('bids__seller', 'ratings')


class LifecycleMixin:
    authentication_classes = [JWTAuthentication]
    permission_classes = [permissions.IsAuthenticated]

    def get_service(self):
        return ProjectLifecycleService()

    def project_response(self, project, detail, http_status=status.HTTP_200_OK, **extra):
        payload = {
            'detail': detail,
            'project': my_serializers.ProjectSerializer(project, context={'request': self.request}).data,
        }
        payload.update(extra)
        return Response(payload, status=http_status)


class ProjectListCreateAPIView(LifecycleMixin, generics.ListCreateAPIView):
    """
    GET: projects still open for bidding (PENDING), with their bids and buyer.
    POST: buyers create a new project.
    """
    serializer_class = my_serializers.OpenProjectSerializer
    pagination_class = ProjectListPagination
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = OpenProjectFilter
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'deadline', 'budget']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsBuyer()]

    def get_queryset(self):
        return (
            Project.objects.filter(status=Project.Status.PENDING)
            .select_related('buyer')
            .prefetch_related('bids__seller')
        )

    @swagger_auto_schema(
        operation_summary="List projects open for bidding",
        responses={200: my_serializers.OpenProjectSerializer(many=True)}
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_summary="Create a project",
        request_body=my_serializers.CreateProjectSerializer,
        responses={201: my_serializers.ProjectSerializer(), 400: "Validation error"}
    )
    def post(self, request, *args, **kwargs):
        serializer = my_serializers.CreateProjectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        project = self.get_service().create_project(
            request.user,
            title=data['title'],
            description=data['description'],
            budget=data['budget'],
            currency=data['budget_currency'],
            deadline=data['deadline'],
        )
        return self.project_response(project, "Project created successfully.", status.HTTP_201_CREATED)


class ProjectRetrieveUpdateAPIView(LifecycleMixin, generics.RetrieveAPIView):
    """
    GET: project detail.
    PATCH: the owning buyer edits title, description and/or deadline.
    """
    serializer_class = my_serializers.ProjectDetailSerializer
    queryset = PROJECT_DETAIL_QUERYSET
    lookup_field = 'id'

    @swagger_auto_schema(
        operation_summary="Retrieve a project",
        responses={200: my_serializers.ProjectDetailSerializer(), 404: "Not found"}
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_summary="Edit project details",
        request_body=my_serializers.UpdateProjectDetailsSerializer,
        responses={200: my_serializers.ProjectSerializer(), 403: "Not the project owner"}
    )
    def patch(self, request, id):
        serializer = my_serializers.UpdateProjectDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project, changed = self.get_service().update_details(request.user, id, **serializer.validated_data)
        detail = "Project updated successfully." if changed else "No changes to apply."
        return self.project_response(project, detail, changed=changed)


class BuyerProjectListAPIView(LifecycleMixin, generics.ListAPIView):
    serializer_class = my_serializers.ProjectDetailSerializer
    permission_classes = [permissions.IsAuthenticated, IsSelfOrStaff]
    owner_url_kwarg = 'buyer_id'

    @swagger_auto_schema(operation_summary="List a buyer's projects")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return PROJECT_DETAIL_QUERYSET.filter(buyer_id=self.kwargs['buyer_id'])


class SellerSelectedProjectListAPIView(LifecycleMixin, generics.ListAPIView):
    serializer_class = my_serializers.ProjectDetailSerializer
    permission_classes = [permissions.IsAuthenticated, IsSelfOrStaff]
    owner_url_kwarg = 'seller_id'

    @swagger_auto_schema(operation_summary="List projects a seller has been selected for")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return PROJECT_DETAIL_QUERYSET.filter(selected_bid__seller_id=self.kwargs['seller_id'])


class SelectSellerAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Select a bid's seller for the project",
        responses={200: my_serializers.ProjectSerializer(), 404: "Project or bid not found", 409: "Project not open"}
    )
    def post(self, request, id, bid_id):
        project = self.get_service().select_seller(request.user, id, bid_id)
        return self.project_response(project, "Seller selected.")


class UnselectSellerAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Unselect the project's seller and reopen bidding")
    def post(self, request, id):
        project = self.get_service().unselect_seller(request.user, id)
        return self.project_response(project, "Seller unselected successfully. Project is now open for bidding.")


class CompleteProjectAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Mark a reviewed project as completed")
    def post(self, request, id):
        project = self.get_service().complete_project(id, user=request.user)
        return self.project_response(project, "Project completed.")


class CancelProjectAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Cancel a project")
    def post(self, request, id):
        project = self.get_service().cancel_project(request.user, id)
        return self.project_response(project, "Project cancelled successfully.")


class RequestChangesAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Request changes on the submitted deliverable")
    def patch(self, request, id):
        project = self.get_service().request_changes(request.user, id)
        return self.project_response(project, "Changes requested successfully.")


class UpdateProgressAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Update project progress (0-99)",
        request_body=my_serializers.ProgressSerializer,
    )
    def patch(self, request, id):
        serializer = my_serializers.ProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = self.get_service().update_progress(request.user, id, serializer.validated_data['progress'])
        return self.project_response(project, "Progress updated successfully.")


class UploadDeliverableAPIView(LifecycleMixin, drf_views.APIView):
    parser_classes = [MultiPartParser, FormParser]
    revised = False

    @swagger_auto_schema(
        operation_summary="Upload the project deliverable",
        manual_parameters=[
            openapi.Parameter(
                'deliverable',
                openapi.IN_FORM,
                description="Deliverable file",
                type=openapi.TYPE_FILE,
                required=True,
            )
        ],
    )
    def post(self, request, id):
        serializer = my_serializers.DeliverableUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        upload = serializer.validated_data['deliverable']

        service = self.get_service()
        if self.revised:
            project, deliverable = service.reupload_deliverable(request.user, id, upload)
            detail = "Deliverable re-uploaded successfully."
        else:
            project, deliverable = service.upload_deliverable(request.user, id, upload)
            detail = "Deliverable uploaded successfully."

        return self.project_response(
            project,
            detail,
            deliverable=my_serializers.DeliverableSerializer(deliverable, context={'request': request}).data,
        )


class ReuploadDeliverableAPIView(UploadDeliverableAPIView):
    revised = True


class CreateBidAPIView(LifecycleMixin, drf_views.APIView):
    permission_classes = [permissions.IsAuthenticated, IsSeller]

    @swagger_auto_schema(
        operation_summary="Place a bid on a project",
        request_body=my_serializers.CreateBidSerializer,
        responses={201: my_serializers.BidSerializer(), 404: "Project not found"}
    )
    def post(self, request):
        serializer = my_serializers.CreateBidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        bid = self.get_service().place_bid(
            request.user,
            data['project_id'],
            amount=data['amount'],
            duration_days=data['duration_days'],
            message=data['message'],
        )
        return Response({
            'detail': "Bid placed successfully.",
            'bid': my_serializers.BidSerializer(bid).data,
        }, status=status.HTTP_201_CREATED)


class SellerBidListAPIView(LifecycleMixin, generics.ListAPIView):
    serializer_class = my_serializers.SellerBidSerializer
    permission_classes = [permissions.IsAuthenticated, IsSelfOrStaff]
    owner_url_kwarg = 'seller_id'
    filter_backends = [OrderingFilter]
    ordering_fields = ['created_at', 'amount', 'duration_days']
    ordering = ['-created_at']

    @swagger_auto_schema(operation_summary="List a seller's bids")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return Bid.objects.filter(seller_id=self.kwargs['seller_id']).select_related('project')


class RateSellerAPIView(LifecycleMixin, drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Rate the selected seller of a project",
        request_body=my_serializers.RateSellerSerializer,
        responses={201: "Seller rated", 409: "Already rated or no seller selected"}
    )
    def post(self, request):
        serializer = my_serializers.RateSellerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        rating, seller = self.get_service().rate_seller(
            request.user,
            data['project_id'],
            data['value'],
            data['comment'],
        )
        return Response({
            'detail': "Seller rated successfully.",
            'rating': my_serializers.RatingSerializer(rating).data,
            'seller': PublicUserSerializer(seller).data,
        }, status=status.HTTP_201_CREATED)
