# projects/apps.py

"""
PROJECTS APP CONFIG

Job costing module:
- Projects with budget, sale value and a status lifecycle
- Material usage drawn from inventory (OUT movements)
- Labor entries and other costs
- Cost aggregates recomputed from child rows
"""

from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "projects"
    verbose_name = "Projects"
