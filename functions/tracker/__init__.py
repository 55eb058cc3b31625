"""
Project tracker API.

FastAPI service for project documents (Firestore), user/project links
(relational store via SQLAlchemy) and project images (object storage).
Each store sits behind a small interface with an in-memory implementation
for development and tests.
"""
