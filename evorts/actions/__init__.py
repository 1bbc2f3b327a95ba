"""Unit actions: resource gathering and depositing."""

from evorts.actions.gather import deposit_resources, find_nearby_resource, gather_resource

__all__ = ["deposit_resources", "find_nearby_resource", "gather_resource"]
