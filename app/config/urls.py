"""
URL configuration for the file sharing service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain JWT access/refresh pair
    /api/v1/auth/token/refresh/    - Refresh an access token
    /api/v1/sharing/               - Share link endpoints (see sharing/urls.py)
        files/{id}/shares/         - Create/list/revoke-all links of a file
        shares/                    - List my links
        shares/{id}/               - Get/update/revoke a link
        shares/{id}/analytics/     - Link usage summary
        shares/{id}/accesses/      - Link access history
        shares/{id}/notify/        - Notify recipients / history
        public/{token}/            - Anonymous landing page
        public/{token}/view/       - Anonymous inline view
        public/{token}/download/   - Anonymous download
        maintenance/               - Staff analytics and maintenance

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # JWT authentication
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Share links
    path("sharing/", include("sharing.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "File Sharing Admin"
admin.site.site_title = "File Sharing"
admin.site.index_title = "Share links, access logs and notifications"
