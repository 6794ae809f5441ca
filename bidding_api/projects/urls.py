from django.urls import path

from . import views as my_views

urlpatterns = [
    # Project endpoints
    path('projects/', my_views.ProjectListCreateAPIView.as_view(), name='project-list-create'),
    path('projects/<int:id>/', my_views.ProjectRetrieveUpdateAPIView.as_view(), name='project-detail'),
    path('projects/buyer/<int:buyer_id>/', my_views.BuyerProjectListAPIView.as_view(), name='buyer-projects'),
    path(
        'projects/selected-projects/seller/<int:seller_id>/',
        my_views.SellerSelectedProjectListAPIView.as_view(),
        name='seller-selected-projects',
    ),

    # Lifecycle endpoints
    path('projects/<int:id>/select-seller/<int:bid_id>/', my_views.SelectSellerAPIView.as_view(), name='select-seller'),
    path('projects/<int:id>/unselect-seller/', my_views.UnselectSellerAPIView.as_view(), name='unselect-seller'),
    path('projects/<int:id>/complete/', my_views.CompleteProjectAPIView.as_view(), name='complete-project'),
    path('projects/<int:id>/cancel/', my_views.CancelProjectAPIView.as_view(), name='cancel-project'),
    path('projects/<int:id>/request-changes/', my_views.RequestChangesAPIView.as_view(), name='request-changes'),
    path('projects/<int:id>/progress/', my_views.UpdateProgressAPIView.as_view(), name='update-progress'),
    path('projects/<int:id>/upload/', my_views.UploadDeliverableAPIView.as_view(), name='upload-deliverable'),
    path('projects/<int:id>/reupload/', my_views.ReuploadDeliverableAPIView.as_view(), name='reupload-deliverable'),

    # Bid endpoints
    path('bids/', my_views.CreateBidAPIView.as_view(), name='create-bid'),
    path('bids/seller/<int:seller_id>/', my_views.SellerBidListAPIView.as_view(), name='seller-bids'),

    # Rating endpoints
    path('users/', my_views.RateSellerAPIView.as_view(), name='rate-seller'),
]
