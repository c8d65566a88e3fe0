"""
Document Database Workshop Web API.

FastAPI service exposing the document repository over HTTP.
"""
