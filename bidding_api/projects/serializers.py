from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import Project, Bid, Deliverable, Rating


class BidSummarySerializer(serializers.ModelSerializer):
    """
    Serializer summarizing bids for project list/detail views.

    Fields (all read-only): id, seller, amount, duration_days, message, created_at.
    """
    seller = PublicUserSerializer(read_only=True)

    class Meta:
        model = Bid
        fields = ['id', 'seller', 'amount', 'duration_days', 'message', 'created_at']
        read_only_fields = fields


class ProjectSummarySerializer(serializers.ModelSerializer):
    """
    Serializer providing compact project information for nested responses.
    """
    class Meta:
        model = Project
        fields = ['id', 'title', 'description', 'budget', 'budget_currency', 'deadline', 'status', 'progress', 'created_at']
        read_only_fields = fields


class DeliverableSerializer(serializers.ModelSerializer):
    class Meta:
        model = Deliverable
        fields = ['id', 'file', 'uploaded_at', 'updated_at']
        read_only_fields = fields


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rating
        fields = ['id', 'project', 'buyer', 'seller', 'value', 'comment', 'created_at']
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    """
    Serializer for project payloads returned by lifecycle endpoints.

    Embeds the buyer and the selected bid; status, progress and selection are
    read-only here because they only move through lifecycle operations.
    """
    buyer = PublicUserSerializer(read_only=True)
    selected_bid = BidSummarySerializer(read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'buyer', 'title', 'description', 'budget', 'budget_currency', 'deadline',
            'status', 'progress', 'selected_bid', 'created_at', 'updated_at', 'completed_at',
        ]
        read_only_fields = fields


class OpenProjectSerializer(ProjectSerializer):
    """
    Serializer for the public listing of projects open for bidding.
    """
    bids = BidSummarySerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['bids']
        read_only_fields = fields


class ProjectDetailSerializer(OpenProjectSerializer):
    """
    Serializer for a single project, including its deliverable and ratings,
    as shown on the buyer's and the selected seller's dashboards.
    """
    deliverable = serializers.SerializerMethodField()
    ratings = RatingSerializer(many=True, read_only=True)

    class Meta(OpenProjectSerializer.Meta):
        fields = OpenProjectSerializer.Meta.fields + ['deliverable', 'ratings']
        read_only_fields = fields

    def get_deliverable(self, obj):
        deliverable = getattr(obj, 'deliverable', None)
        if deliverable is None:
            return None
        return DeliverableSerializer(deliverable, context=self.context).data


class CreateProjectSerializer(serializers.Serializer):
    """
    Serializer for buyers creating new projects.

    Fields:
        - title, description, budget, deadline (required)
        - budget_currency (optional, defaults to USD)
    """
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    budget = serializers.DecimalField(max_digits=12, decimal_places=2)
    budget_currency = serializers.ChoiceField(choices=Project.Currency.choices, default=Project.Currency.USD)
    deadline = serializers.DateTimeField()

    def validate_budget(self, value):
        if value < 0:
            raise serializers.ValidationError("Please enter a valid budget.")
        return value


class UpdateProjectDetailsSerializer(serializers.Serializer):
    """
    Serializer for buyers editing title, description and deadline. Every
    field is optional; omitted fields are left untouched.
    """
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False)
    deadline = serializers.DateTimeField(required=False)


class ProgressSerializer(serializers.Serializer):
    progress = serializers.IntegerField()


class DeliverableUploadSerializer(serializers.Serializer):
    deliverable = serializers.FileField()


class CreateBidSerializer(serializers.Serializer):
    """
    Serializer for sellers placing bids.

    Validates positive amount and duration before the lifecycle service runs
    its own project checks.
    """
    project_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    duration_days = serializers.IntegerField()
    message = serializers.CharField()

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Please enter a valid bid amount.")
        return value

    def validate_duration_days(self, value):
        if value < 1:
            raise serializers.ValidationError("Duration must be at least one day.")
        return value


class BidSerializer(serializers.ModelSerializer):
    seller = PublicUserSerializer(read_only=True)
    project = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Bid
        fields = ['id', 'project', 'seller', 'amount', 'duration_days', 'message', 'created_at']
        read_only_fields = fields


class SellerBidSerializer(serializers.ModelSerializer):
    """
    Serializer for sellers listing their own bids with project context.
    """
    project = ProjectSummarySerializer(read_only=True)
    is_selected = serializers.SerializerMethodField()

    class Meta:
        model = Bid
        fields = ['id', 'project', 'amount', 'duration_days', 'message', 'created_at', 'is_selected']
        read_only_fields = fields

    def get_is_selected(self, obj):
        return obj.project.selected_bid_id == obj.id


class RateSellerSerializer(serializers.Serializer):
    """
    Serializer for buyers rating the selected seller of a project.

    The 1-5 range is enforced by the lifecycle service so the error kind is
    reported consistently.
    """
    project_id = serializers.IntegerField()
    value = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_blank=True, default='')
