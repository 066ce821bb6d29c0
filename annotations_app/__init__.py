"""
Annotation access core.

Visibility rules, defaulting, attribution, aggregation and serialization
for document annotations shared across organizations.
"""
