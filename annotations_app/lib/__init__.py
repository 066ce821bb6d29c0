"""
Library modules for the annotation access core.

Pure policy modules (access_levels, access_control, comment_policy,
annotation_defaults, serializer) have no storage dependency. Storage
backed modules (attribution, aggregation, annotation_service) take
repositories from the repository package.
"""
