"""Feature resolution for the final build."""

from sbo.features.models import FeatureFlag
from sbo.features.resolver import resolve_feature, resolve_features

__all__ = ["FeatureFlag", "resolve_feature", "resolve_features"]
