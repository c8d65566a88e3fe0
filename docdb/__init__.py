"""
Document database workshop.

Generic document repository, domain payloads and console samples for a
managed document database reached over the MongoDB wire protocol.
"""
