"""
Request models
"""
from llamanator.models.template_query import TemplateQuery

__all__ = ["TemplateQuery"]
