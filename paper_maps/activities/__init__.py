"""Pipeline activities.

Each activity performs a single unit of work:
- validate_feature: check one feature (or collection) against the schema
- assemble: merge source collections, register publishers, sample
- emit: write the archive, sample, publisher registry and tile job
- check_links: probe every URL the corpus references
"""
