# projects/urls.py

"""
PROJECTS URLS

Registered under /api/projects/:
- projects/                         CRUD, next-reference/
- projects/{id}/transition/
- projects/{id}/materials/          GET list, POST issue
- projects/{id}/materials/{usage}/  DELETE return to stock
- projects/{id}/labor/ , labor/{entry}/
- projects/{id}/other-costs/ , other-costs/{cost}/
- projects/{id}/stats/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from projects.views import ProjectViewSet

router = DefaultRouter()

router.register(r"projects", ProjectViewSet, basename="projects")

urlpatterns = [
    path("", include(router.urls)),
]
