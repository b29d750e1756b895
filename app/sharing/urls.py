"""
URL configuration for sharing app.

API Documentation Groups (following [App Name] - [Group Name] pattern):

Sharing - Links:
    GET /files/{file_id}/shares/                  - File sharing stats and shares
    POST /files/{file_id}/shares/                 - Create share link
    DELETE /files/{file_id}/shares/               - Revoke all links of a file
    GET /shares/                                  - List my share links
    GET /shares/{share_id}/                       - Get share link
    PATCH /shares/{share_id}/                     - Change permission
    DELETE /shares/{share_id}/                    - Revoke share link

Sharing - Analytics:
    GET /shares/{share_id}/analytics/             - Share usage summary
    GET /shares/{share_id}/accesses/              - Access history

Sharing - Notifications:
    GET /shares/{share_id}/notify/                - Notification history
    POST /shares/{share_id}/notify/               - Notify recipients

Sharing - Public:
    GET /public/{token}/                          - Inspect link (no access counted)
    GET /public/{token}/view/                     - View file inline
    GET /public/{token}/download/                 - Download file

Sharing - Maintenance (staff):
    GET /maintenance/analytics/                   - System usage analytics
    GET /maintenance/suspicious/                  - Suspicious access activity
    POST /maintenance/run/                        - Run all maintenance steps
"""

from django.urls import path

from sharing.views import (
    FileShareView,
    MaintenanceAnalyticsView,
    MaintenanceRunView,
    PublicShareContentView,
    PublicShareDownloadView,
    PublicShareView,
    ShareAccessListView,
    ShareAnalyticsView,
    ShareDetailView,
    ShareListView,
    ShareNotifyView,
    SuspiciousActivityView,
)

app_name = "sharing"

urlpatterns = [
    # Owner
    path(
        "files/<uuid:file_id>/shares/",
        FileShareView.as_view(),
        name="file-shares",
    ),
    path("shares/", ShareListView.as_view(), name="share-list"),
    path("shares/<int:share_id>/", ShareDetailView.as_view(), name="share-detail"),
    path(
        "shares/<int:share_id>/analytics/",
        ShareAnalyticsView.as_view(),
        name="share-analytics",
    ),
    path(
        "shares/<int:share_id>/accesses/",
        ShareAccessListView.as_view(),
        name="share-accesses",
    ),
    path(
        "shares/<int:share_id>/notify/",
        ShareNotifyView.as_view(),
        name="share-notify",
    ),
    # Public
    path("public/<str:token>/", PublicShareView.as_view(), name="public-share"),
    path(
        "public/<str:token>/view/",
        PublicShareContentView.as_view(),
        name="public-share-view",
    ),
    path(
        "public/<str:token>/download/",
        PublicShareDownloadView.as_view(),
        name="public-share-download",
    ),
    # Staff
    path(
        "maintenance/analytics/",
        MaintenanceAnalyticsView.as_view(),
        name="maintenance-analytics",
    ),
    path(
        "maintenance/suspicious/",
        SuspiciousActivityView.as_view(),
        name="maintenance-suspicious",
    ),
    path("maintenance/run/", MaintenanceRunView.as_view(), name="maintenance-run"),
]
