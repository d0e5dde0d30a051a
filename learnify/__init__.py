"""
Learnify Backend
REST API for a classroom learning-management app.

Architecture:
- Relational database (PostgreSQL): students, check-ins, submissions, quizzes, lessons
- MongoDB GridFS: uploaded submission files (screenshots, documents)
- FastAPI routers under /api consumed by the web and iOS clients
"""

__version__ = "1.0.0"
