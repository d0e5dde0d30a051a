"""
Request/response schemas (Pydantic). Everything lives in schemas.py.
"""
