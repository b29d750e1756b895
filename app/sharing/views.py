"""
API views for share links.

Provides:
- FileShareView: Create, list and bulk-revoke shares of one file (owner)
- ShareListView: List the caller's shares
- ShareDetailView: Get, change permission, revoke (owner)
- ShareAnalyticsView / ShareAccessListView: Usage reporting (owner)
- ShareNotifyView: Notify recipients, notification history (owner)
- PublicShareView: Anonymous landing page for a token
- PublicShareContentView: Anonymous view/download of the shared file
- Maintenance*View: Staff analytics, suspicious activity, maintenance run

Public endpoints return the same 404 body for every denial so a token
holder cannot tell a revoked link from one that never existed. The
precise reason is written to the sharing.security log.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.db import InterfaceError, OperationalError, transaction
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError, NotFoundError, TransientStoreError
from core.helpers import get_client_ip, get_user_agent
from media.services.delivery import FileDeliveryService
from media.services.file_store import MediaFileStore
from sharing.exceptions import AccessConflictError, ShareUnavailableError
from sharing.models import AccessType
from sharing.serializers import (
    FileSharingStatsSerializer,
    NotificationResultSerializer,
    PublicShareSerializer,
    ShareAccessQuerySerializer,
    ShareAccessSerializer,
    ShareAnalyticsSerializer,
    ShareCreateSerializer,
    ShareNotificationSerializer,
    ShareNotifySerializer,
    SharePermissionUpdateSerializer,
    ShareRevokeSerializer,
    ShareSerializer,
    SuspiciousActivityQuerySerializer,
    SuspiciousActivitySerializer,
    UsageAnalyticsSerializer,
)
from sharing.services import (
    AccessRecorder,
    MaintenanceService,
    SharePolicyEngine,
    ShareService,
)
from sharing.tasks import send_share_notifications

logger = logging.getLogger(__name__)

# ServiceResult error codes that are not plain validation failures
ERROR_STATUS = {
    "SHARE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_OWNER": status.HTTP_403_FORBIDDEN,
    "SHARE_INACTIVE": status.HTTP_409_CONFLICT,
}

# Seconds clients should wait after a transient store failure
RETRY_AFTER_SECONDS = 5

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def failure_response(result) -> Response:
    """Render a failed ServiceResult with the status its error code implies."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def public_denial_response() -> Response:
    return Response(
        ShareUnavailableError("denied").to_public_dict(),
        status=status.HTTP_404_NOT_FOUND,
    )


class SharingAPIView(APIView):
    """
    Base view that renders application errors raised by services.

    TransientStoreError becomes 503 with a Retry-After header; other
    BaseApplicationError subclasses use their own http_status. Lazy
    querysets from services are evaluated here (pagination, serializers),
    so driver timeouts raised at that point get the same 503.
    """

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, (OperationalError, InterfaceError)):
            logger.warning(
                f"Transient store failure in {self.__class__.__name__}: {exc}",
                extra={"view": self.__class__.__name__},
            )
            exc = TransientStoreError(
                "The data store is temporarily unavailable. Please retry.",
                details={"view": self.__class__.__name__},
            )
        if isinstance(exc, ShareUnavailableError):
            return Response(exc.to_public_dict(), status=exc.http_status)
        if isinstance(exc, BaseApplicationError):
            response = Response(exc.to_dict(), status=exc.http_status)
            if exc.retryable:
                response["Retry-After"] = str(RETRY_AFTER_SECONDS)
            return response
        return super().handle_exception(exc)


# =============================================================================
# Owner endpoints
# =============================================================================


class FileShareView(SharingAPIView):
    """
    Manage share links of one file.

    GET /api/v1/sharing/files/{file_id}/shares/
        Sharing statistics plus every share of the file.

    POST /api/v1/sharing/files/{file_id}/shares/
        Create a share link, optionally notifying recipients.

    DELETE /api/v1/sharing/files/{file_id}/shares/
        Revoke every active share of the file.

    Authentication:
        Requires valid JWT token. Only the file owner may call these.
    """

    @extend_schema(
        operation_id="list_file_share_links",
        summary="List share links of a file",
        responses={
            200: OpenApiResponse(description="Statistics and shares of the file"),
            403: OpenApiResponse(description="Only the file owner can view shares"),
            404: OpenApiResponse(description="File not found"),
        },
        tags=["Sharing - Links"],
    )
    def get(self, request, file_id):
        service = ShareService()
        result = service.get_file_sharing_stats(file_id, request.user.id)
        if not result:
            return failure_response(result)

        shares = service.list_shares(request.user.id).filter(file_id=file_id)
        context = {"config": service.config, "now": service.clock.now()}
        return Response(
            {
                "stats": FileSharingStatsSerializer(result.data).data,
                "shares": ShareSerializer(shares, many=True, context=context).data,
            }
        )

    @extend_schema(
        operation_id="create_share_link",
        summary="Create share link",
        description=(
            "Create a tokenized link to a file you own. Optionally limit the "
            "number of accesses, set an expiration, and email recipients. "
            "Notifications are sent asynchronously after the share is committed."
        ),
        request=ShareCreateSerializer,
        responses={
            201: OpenApiResponse(response=ShareSerializer, description="Share created"),
            400: OpenApiResponse(description="Invalid permission, limit or expiration"),
            403: OpenApiResponse(description="Only the file owner can share it"),
            404: OpenApiResponse(description="File not found"),
        },
        tags=["Sharing - Links"],
    )
    def post(self, request, file_id):
        serializer = ShareCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        service = ShareService()
        result = service.create_share(
            file_id=file_id,
            owner_id=request.user.id,
            permission=data["permission"],
            expires_at=data.get("expires_at"),
            max_access=data.get("max_access"),
        )
        if not result:
            return failure_response(result)
        share = result.data

        recipients = data.get("recipient_emails") or []
        if recipients:
            transaction.on_commit(
                lambda: send_share_notifications.delay(share.pk, recipients)
            )

        output = ShareSerializer(
            share, context={"config": service.config, "now": service.clock.now()}
        ).data
        output["notifications_queued"] = len(recipients)
        return Response(output, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="revoke_file_share_links",
        summary="Revoke all share links of a file",
        responses={
            200: OpenApiResponse(description="Number of shares revoked"),
            403: OpenApiResponse(description="Only the file owner can revoke shares"),
            404: OpenApiResponse(description="File not found"),
        },
        tags=["Sharing - Links"],
    )
    def delete(self, request, file_id):
        result = ShareService().revoke_all_for_file(file_id, request.user.id)
        if not result:
            return failure_response(result)
        return Response({"revoked": result.data})


class ShareListView(SharingAPIView):
    """
    GET /api/v1/sharing/shares/
        List the caller's shares, newest first.

    Query params:
        active: "true" to return only active shares
        page, page_size: pagination
    """

    @extend_schema(
        operation_id="list_share_links",
        summary="List my share links",
        parameters=[
            OpenApiParameter(
                name="active",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                description="Only return active shares",
            ),
        ],
        responses={200: ShareSerializer(many=True)},
        tags=["Sharing - Links"],
    )
    def get(self, request):
        active_only = request.query_params.get("active", "").lower() in ("1", "true", "yes")
        service = ShareService()
        shares = service.list_shares(request.user.id, active_only=active_only)

        try:
            page_size = int(request.query_params.get("page_size", DEFAULT_PAGE_SIZE))
        except ValueError:
            page_size = DEFAULT_PAGE_SIZE

        paginator = PageNumberPagination()
        paginator.page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        page = paginator.paginate_queryset(shares, request)
        serializer = ShareSerializer(
            page,
            many=True,
            context={"config": service.config, "now": service.clock.now()},
        )
        return paginator.get_paginated_response(serializer.data)


class ShareDetailView(SharingAPIView):
    """
    GET /api/v1/sharing/shares/{share_id}/
        Share details.

    PATCH /api/v1/sharing/shares/{share_id}/
        Change the permission of an active share.

    DELETE /api/v1/sharing/shares/{share_id}/
        Revoke the share. Idempotent.
    """

    @extend_schema(
        operation_id="get_share_link",
        summary="Get share link",
        responses={
            200: ShareSerializer,
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
        },
        tags=["Sharing - Links"],
    )
    def get(self, request, share_id):
        service = ShareService()
        result = service.get_share(share_id, request.user.id)
        if not result:
            return failure_response(result)
        return Response(
            ShareSerializer(
                result.data,
                context={"config": service.config, "now": service.clock.now()},
            ).data
        )

    @extend_schema(
        operation_id="update_share_link_permission",
        summary="Change share permission",
        request=SharePermissionUpdateSerializer,
        responses={
            200: ShareSerializer,
            400: OpenApiResponse(description="Unknown permission"),
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
            409: OpenApiResponse(description="Share is no longer active"),
        },
        tags=["Sharing - Links"],
    )
    def patch(self, request, share_id):
        serializer = SharePermissionUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        service = ShareService()
        result = service.update_permission(
            share_id, request.user.id, serializer.validated_data["permission"]
        )
        if not result:
            return failure_response(result)
        return Response(
            ShareSerializer(
                result.data,
                context={"config": service.config, "now": service.clock.now()},
            ).data
        )

    @extend_schema(
        operation_id="revoke_share_link",
        summary="Revoke share link",
        description=(
            "Deactivate the link immediately. Revoking an already inactive "
            "share succeeds without changes."
        ),
        request=ShareRevokeSerializer,
        responses={
            204: OpenApiResponse(description="Share revoked"),
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
        },
        tags=["Sharing - Links"],
    )
    def delete(self, request, share_id):
        serializer = ShareRevokeSerializer(data=request.data or request.query_params)
        serializer.is_valid(raise_exception=True)

        result = ShareService().revoke(
            share_id,
            request.user.id,
            notify_recipients=serializer.validated_data["notify_recipients"],
        )
        if not result:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ShareAnalyticsView(SharingAPIView):
    """GET /api/v1/sharing/shares/{share_id}/analytics/ - usage summary."""

    @extend_schema(
        operation_id="get_share_link_analytics",
        summary="Share usage analytics",
        responses={
            200: ShareAnalyticsSerializer,
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
        },
        tags=["Sharing - Analytics"],
    )
    def get(self, request, share_id):
        result = ShareService().get_analytics(share_id, owner_id=request.user.id)
        if not result:
            return failure_response(result)
        return Response(ShareAnalyticsSerializer(result.data).data)


class ShareAccessListView(SharingAPIView):
    """GET /api/v1/sharing/shares/{share_id}/accesses/ - access history."""

    @extend_schema(
        operation_id="list_share_link_accesses",
        summary="Share access history",
        parameters=[
            OpenApiParameter(
                name="access_type",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=list(AccessType.values),
            ),
        ],
        responses={
            200: ShareAccessSerializer(many=True),
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
        },
        tags=["Sharing - Analytics"],
    )
    def get(self, request, share_id):
        query = ShareAccessQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        result = ShareService().list_accesses(
            share_id,
            request.user.id,
            access_type=query.validated_data.get("access_type"),
        )
        if not result:
            return failure_response(result)

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(result.data, request)
        return paginator.get_paginated_response(
            ShareAccessSerializer(page, many=True).data
        )


class ShareNotifyView(SharingAPIView):
    """
    GET /api/v1/sharing/shares/{share_id}/notify/
        Notification history of the share.

    POST /api/v1/sharing/shares/{share_id}/notify/
        Email recipients now and report per-recipient outcomes.
    """

    @extend_schema(
        operation_id="list_share_link_notifications",
        summary="Share notification history",
        responses={200: ShareNotificationSerializer(many=True)},
        tags=["Sharing - Notifications"],
    )
    def get(self, request, share_id):
        service = ShareService()
        result = service.get_share(share_id, request.user.id)
        if not result:
            return failure_response(result)
        history = service.dispatcher.get_history(result.data)
        return Response(ShareNotificationSerializer(history, many=True).data)

    @extend_schema(
        operation_id="notify_share_link_recipients",
        summary="Notify recipients",
        description=(
            "Send the share link to each address. A failure for one recipient "
            "does not affect the others; inspect each result."
        ),
        request=ShareNotifySerializer,
        responses={
            200: NotificationResultSerializer(many=True),
            403: OpenApiResponse(description="Not the share owner"),
            404: OpenApiResponse(description="Share not found"),
            409: OpenApiResponse(description="Share is no longer usable"),
        },
        tags=["Sharing - Notifications"],
    )
    def post(self, request, share_id):
        serializer = ShareNotifySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = ShareService().notify(
            share_id,
            serializer.validated_data["recipient_emails"],
            owner_id=request.user.id,
        )
        if not result:
            return failure_response(result)
        return Response(NotificationResultSerializer(result.data, many=True).data)


# =============================================================================
# Public endpoints
# =============================================================================


class PublicShareView(SharingAPIView):
    """
    GET /api/v1/sharing/public/{token}/

    Landing page data for a link holder. Read-only: does not count as an
    access and never changes the share.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="get_public_share",
        summary="Inspect share link",
        responses={
            200: PublicShareSerializer,
            404: OpenApiResponse(description="Link invalid or no longer available"),
        },
        tags=["Sharing - Public"],
    )
    def get(self, request, token):
        decision = SharePolicyEngine().peek_access(token)
        if not decision:
            return public_denial_response()

        share = decision.share
        metadata = MediaFileStore().get_file_metadata(share.file_id)
        if metadata is None:
            return public_denial_response()

        return Response(
            PublicShareSerializer(
                {
                    "filename": metadata.filename,
                    "content_type": metadata.content_type,
                    "size": metadata.size,
                    "permission": share.permission,
                    "can_download": share.allows_download,
                    "expires_at": share.expires_at,
                    "remaining_accesses": share.remaining_accesses,
                }
            ).data
        )


class PublicShareContentView(SharingAPIView):
    """
    GET /api/v1/sharing/public/{token}/view/
    GET /api/v1/sharing/public/{token}/download/

    Serve the shared file inline or as an attachment. Each successful
    response counts as one access against the share's limit.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    access_type = AccessType.VIEW

    @extend_schema(
        operation_id="get_public_share_content",
        summary="Open shared file",
        responses={
            200: OpenApiResponse(description="Binary file content"),
            404: OpenApiResponse(description="Link invalid or no longer available"),
            503: OpenApiResponse(description="Temporarily unavailable, retry later"),
        },
        tags=["Sharing - Public"],
    )
    def get(self, request, token):
        ip = get_client_ip(request)
        user_agent = get_user_agent(request)
        engine = SharePolicyEngine()
        recorder = AccessRecorder(clock=engine.clock)
        file_store = MediaFileStore()

        # One re-resolve after a lost race; the second pass reports the
        # precise reason or wins the next slot.
        for _ in range(2):
            decision = engine.resolve_access(token, self.access_type, ip, user_agent)
            if not decision:
                return public_denial_response()

            share = decision.share
            metadata = file_store.get_file_metadata(share.file_id)
            if metadata is None:
                return public_denial_response()

            try:
                response = FileDeliveryService(file_store).serve_file_response(
                    metadata,
                    as_attachment=self.access_type == AccessType.DOWNLOAD,
                )
            except NotFoundError:
                return public_denial_response()

            try:
                recorder.record_access(share, self.access_type, ip, user_agent)
            except AccessConflictError:
                response.close()
                continue
            except ShareUnavailableError:
                response.close()
                return public_denial_response()
            except BaseApplicationError:
                response.close()
                raise
            return response

        return public_denial_response()


class PublicShareDownloadView(PublicShareContentView):
    access_type = AccessType.DOWNLOAD


# =============================================================================
# Staff endpoints
# =============================================================================


class MaintenanceAnalyticsView(SharingAPIView):
    """GET /api/v1/sharing/maintenance/analytics/ - system usage snapshot."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="get_sharing_usage_analytics",
        summary="Sharing usage analytics",
        responses={200: UsageAnalyticsSerializer},
        tags=["Sharing - Maintenance"],
    )
    def get(self, request):
        analytics = MaintenanceService().generate_analytics()
        return Response(UsageAnalyticsSerializer(analytics).data)


class SuspiciousActivityView(SharingAPIView):
    """GET /api/v1/sharing/maintenance/suspicious/ - IPs with abnormal volume."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="list_suspicious_share_activity",
        summary="Suspicious access activity",
        parameters=[
            OpenApiParameter(name="window_hours", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="threshold", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        ],
        responses={200: SuspiciousActivitySerializer(many=True)},
        tags=["Sharing - Maintenance"],
    )
    def get(self, request):
        query = SuspiciousActivityQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        service = MaintenanceService()
        threshold = (
            query.validated_data.get("threshold")
            or service.config.suspicious_access_threshold
        )
        flagged = service.detect_suspicious(
            timedelta(hours=query.validated_data["window_hours"]), threshold
        )
        return Response(SuspiciousActivitySerializer(flagged, many=True).data)


class MaintenanceRunView(SharingAPIView):
    """
    POST /api/v1/sharing/maintenance/run/

    Run every maintenance step now. A failing step is reported in
    `errors` and does not stop the others.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="run_sharing_maintenance",
        summary="Run share maintenance",
        request=None,
        responses={200: OpenApiResponse(description="Per-step maintenance report")},
        tags=["Sharing - Maintenance"],
    )
    def post(self, request):
        report = MaintenanceService().run_all()
        return Response(
            {
                "expired_deactivated": report.expired_deactivated,
                "exhausted_deactivated": report.exhausted_deactivated,
                "access_logs_deleted": (
                    report.cleanup.access_logs_deleted if report.cleanup else None
                ),
                "notifications_deleted": (
                    report.cleanup.notifications_deleted if report.cleanup else None
                ),
                "analytics": (
                    UsageAnalyticsSerializer(report.analytics).data
                    if report.analytics
                    else None
                ),
                "errors": report.errors,
            }
        )
